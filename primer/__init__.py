"""Compile source projects into token-budgeted context documents."""

from .compiler import ContextCompiler, compile_context
from .models import ContextResult, FileSignatures, ProjectInfo, SignatureEntry

__version__ = "0.3.0"

__all__ = [
    "ContextCompiler",
    "ContextResult",
    "FileSignatures",
    "ProjectInfo",
    "SignatureEntry",
    "compile_context",
]
