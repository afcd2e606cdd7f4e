from .config import ExtractConfig, load_config
from .edits import Edit, apply_edits
from .errors import (
    ConfigError,
    Diagnostic,
    I18nExtractError,
    ParseError,
    ScriptSyntaxError,
    TemplateSyntaxError,
)
from .key_store import KeyStore
from .processor import Extractor, FileResult, run_extraction
from .script_rewriter import ScriptRewriter
from .template_rewriter import TemplateRewriter

__version__ = "0.3.0"

__all__ = [
    "ConfigError",
    "Diagnostic",
    "Edit",
    "ExtractConfig",
    "Extractor",
    "FileResult",
    "I18nExtractError",
    "KeyStore",
    "ParseError",
    "ScriptRewriter",
    "ScriptSyntaxError",
    "TemplateRewriter",
    "TemplateSyntaxError",
    "apply_edits",
    "load_config",
    "run_extraction",
]
