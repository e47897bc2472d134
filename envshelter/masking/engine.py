"""Masking engine: parse (cached), resolve modes, apply strategies."""

import logging
import os
from typing import Any, Optional, Union

from ..core.cache import ContentCache, fingerprint
from ..core.parser import EdfParser
from ..core.patterns import PatternResolver
from ..core.types import MaskContext, MaskedLine, MaskResult, ParsedDocument, Parser
from ..strategies.registry import StrategyRegistry

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 200


def source_basename(source: Optional[str]) -> Optional[str]:
    """Reduce a source path to the basename used for source pattern matching."""
    if not source:
        return None
    return os.path.basename(os.fspath(source).rstrip("/\\")) or None


class MaskEngine:
    """
    Turn EDF content into masked-span descriptors.

    Parse results are cached by content fingerprint so repeated refreshes
    of an unchanged document skip parsing entirely.
    """

    def __init__(
        self,
        resolver: PatternResolver,
        registry: StrategyRegistry,
        parser: Optional[Parser] = None,
        cache: Optional[ContentCache[str, ParsedDocument]] = None,
        skip_comments: bool = True,
        settings: Optional[Any] = None,
    ) -> None:
        self.resolver = resolver
        self.registry = registry
        self.parser: Parser = parser or EdfParser()
        self.cache: ContentCache[str, ParsedDocument] = (
            cache if cache is not None else ContentCache(DEFAULT_CACHE_SIZE)
        )
        self.skip_comments = skip_comments
        self.settings = settings

    def parse(self, content: Union[bytes, str]) -> ParsedDocument:
        """
        Parse ``content``, serving repeated content from the cache.

        Raises:
            ParseError: Propagated from the parser; nothing is cached
        """
        if isinstance(content, str):
            content = content.encode("utf-8")

        key = fingerprint(content)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        document = self.parser.parse(content)
        self.cache.put(key, document)
        return document

    def determine_mode(self, key: str, source: Optional[str] = None) -> str:
        """Resolve the mode for ``key`` in the file at ``source``."""
        return self.resolver.determine_mode(key, source_basename(source))

    def mask_value(
        self,
        value: str,
        context: Optional[MaskContext] = None,
        mode: Optional[str] = None,
    ) -> str:
        """Mask a single value, resolving the mode from the context when not given."""
        if context is None:
            context = MaskContext()
        if mode is None:
            mode = self.determine_mode(context.key, context.source)
        context.settings = self.settings
        return self.registry.apply(mode, value, context)

    def generate_masks(
        self, content: Union[bytes, str], source: Optional[str] = None
    ) -> MaskResult:
        """
        Produce one masked-span descriptor per maskable entry, in parse order.

        Args:
            content: Raw EDF content
            source: Path of the file the content came from, if any

        Returns:
            MaskResult with descriptors and the document's line offsets
        """
        document = self.parse(content)
        basename = source_basename(source)
        mode_memo: dict[str, str] = {}
        masks: list[MaskedLine] = []

        for entry in document.entries:
            if entry.is_comment and self.skip_comments:
                continue

            mode = mode_memo.get(entry.key)
            if mode is None:
                mode = self.resolver.determine_mode(entry.key, basename)
                mode_memo[entry.key] = mode

            context = MaskContext(
                key=entry.key,
                source=source,
                line_number=entry.line_number,
                quote=entry.quote,
                is_comment=entry.is_comment,
            )
            mask = self.mask_value(entry.value, context, mode)

            masks.append(
                MaskedLine(
                    key=entry.key,
                    mode=mode,
                    line_number=entry.line_number,
                    value_end_line=entry.value_end_line,
                    mask=mask,
                    value_start=entry.value_start,
                    value_end=entry.value_end,
                    value=entry.value,
                    quote=entry.quote,
                    is_comment=entry.is_comment,
                )
            )

        logger.debug(
            f"Generated {len(masks)} masks for {source or '<buffer>'} "
            f"({len(document.entries)} entries)"
        )
        return MaskResult(masks=tuple(masks), line_offsets=document.line_offsets)

    def clear_caches(self) -> None:
        """Drop all cached parse results."""
        self.cache.clear()
