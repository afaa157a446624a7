"""
Substitutes {{.NAME}} references in URLs and command templates.

An unresolved reference is an error: installing with a half-expanded path or
URL is worse than not installing at all.
"""
import re
import shlex
from typing import Mapping, Sequence

from fetchexec.internal.logging import get_logger
from fetchexec.kernel.errors import TemplateExpansionError

logger = get_logger(__name__)

_REFERENCE = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def references(template: str) -> list[str]:
    """Names referenced by a template, in order of appearance."""
    return _REFERENCE.findall(template)


def expand(template: str, context: Mapping[str, str]) -> str:
    leftover = _REFERENCE.sub("", template)
    if "{{" in leftover:
        raise TemplateExpansionError(f"Malformed template: {template!r}", template=template)

    def _substitute(match: re.Match) -> str:
        name = match.group(1)
        try:
            return context[name]
        except KeyError:
            logger.error("Unresolved template variable", variable=name, template=template)
            raise TemplateExpansionError(
                f"Undefined variable {name!r} in template {template!r}",
                template=template,
                variable=name,
            ) from None

    return _REFERENCE.sub(_substitute, template)


def expand_argv(args: Sequence[str], context: Mapping[str, str]) -> list[str]:
    return [expand(arg, context) for arg in args]


def split_command(template: str) -> list[str]:
    """
    Tokenize a command template shell-style *before* expansion, so that an
    expanded value containing spaces (C:\\Program Files\\...) stays one argument.
    Quotes group words; backslashes are literal path separators, not escapes.
    """
    lexer = shlex.shlex(template, posix=True)
    lexer.whitespace_split = True
    lexer.escape = ""
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise TemplateExpansionError(f"Malformed command {template!r}: {e}", template=template) from e
