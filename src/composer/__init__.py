"""Template composition."""

from .document_composer import CompositionResult, DocumentComposer, Slot, SlotKind, compose_document

__all__ = ["CompositionResult", "DocumentComposer", "Slot", "SlotKind", "compose_document"]
