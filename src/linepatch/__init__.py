"""Address-based line patching for LLM coding agents."""

from .structured import ChangeRecord, PatchAction, PatchOperation

__version__ = "0.1.0"

__all__ = ["ChangeRecord", "PatchAction", "PatchOperation", "__version__"]
