"""
Newsletter pipeline orchestration.
"""

from .newsletter_pipeline import NewsletterPipeline, PipelineState, PublishResult, Stage, run_pipeline

__all__ = ["NewsletterPipeline", "PipelineState", "PublishResult", "Stage", "run_pipeline"]
