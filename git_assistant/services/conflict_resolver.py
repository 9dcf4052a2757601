"""Conflict marker parsing and resolution"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

from git_assistant.constants import MARKER_BASE, MARKER_END, MARKER_SEPARATOR, MARKER_START
from git_assistant.exceptions import ConflictParseError, NoConflictMarkersFound
from git_assistant.logging_config import get_logger
from git_assistant.models.conflict import ConflictRegion, ResolutionResult, ResolutionStrategy

logger = get_logger(__name__)

StrategyArg = Union[ResolutionStrategy, Sequence[ResolutionStrategy]]


def _is_marker(line: str, marker: str) -> bool:
    """A marker is exactly seven characters, alone or followed by a space."""
    return line == marker or line.startswith(marker + " ")


def _label(line: str) -> str:
    return line[len(MARKER_START) + 1:] if len(line) > len(MARKER_START) else ""


def _section(text: str, start: int, end: int) -> str:
    """Text between two marker lines, without the line break before the next marker."""
    if end <= start:
        return ""
    value = text[start:end]
    if value.endswith("\n"):
        value = value[:-1]
    if value.endswith("\r"):
        value = value[:-1]
    return value


class ConflictResolver:
    """Parses conflict regions and rewrites them with a chosen strategy."""

    def parse(self, text: str) -> List[ConflictRegion]:
        """Scan ``text`` once and return its conflict regions in order.

        Raises:
            ConflictParseError: On nested, orphaned, duplicated or unterminated markers
        """
        regions: List[ConflictRegion] = []
        state: Optional[str] = None  # None, "ours", "base" or "theirs"
        region_start = region_line = section_start = 0
        ours_label = ""
        ours: Optional[str] = None
        ancestor: Optional[str] = None

        pos = 0
        for number, raw in enumerate(text.split("\n"), start=1):
            line_start = pos
            pos += len(raw) + 1
            next_start = min(pos, len(text))
            line = raw[:-1] if raw.endswith("\r") else raw

            if _is_marker(line, MARKER_START):
                if state is not None:
                    raise ConflictParseError(
                        f"conflict start inside the region opened on line {region_line}", number
                    )
                state = "ours"
                region_start, region_line = line_start, number
                section_start = next_start
                ours_label = _label(line)
                ours = ancestor = None

            elif _is_marker(line, MARKER_BASE):
                if state != "ours":
                    raise ConflictParseError("unexpected base marker", number)
                ours = _section(text, section_start, line_start)
                state = "base"
                section_start = next_start

            elif _is_marker(line, MARKER_SEPARATOR):
                if state is None:
                    raise ConflictParseError("separator outside a conflict region", number)
                if state == "theirs":
                    raise ConflictParseError("second separator in one conflict region", number)
                if state == "ours":
                    ours = _section(text, section_start, line_start)
                else:
                    ancestor = _section(text, section_start, line_start)
                state = "theirs"
                section_start = next_start

            elif _is_marker(line, MARKER_END):
                if state is None:
                    raise ConflictParseError("conflict end without a start", number)
                if state != "theirs":
                    raise ConflictParseError("conflict end before the separator", number)
                regions.append(ConflictRegion(
                    start=region_start,
                    end=line_start + len(line),
                    ours=ours or "",
                    theirs=_section(text, section_start, line_start),
                    ancestor=ancestor,
                    ours_label=ours_label,
                    theirs_label=_label(line),
                    line=region_line,
                ))
                state = None

        if state is not None:
            raise ConflictParseError("unterminated conflict region", region_line)

        logger.debug(f"Parsed {len(regions)} conflict region(s)")
        return regions

    def has_conflict_markers(self, text: str) -> bool:
        """Cheap check for a conflict start marker on any line."""
        return any(_is_marker(line.rstrip("\r"), MARKER_START) for line in text.split("\n"))

    @staticmethod
    def _replacement(region: ConflictRegion, strategy: ResolutionStrategy, newline: str) -> str:
        if strategy == ResolutionStrategy.OURS:
            return region.ours
        if strategy == ResolutionStrategy.THEIRS:
            return region.theirs
        if strategy == ResolutionStrategy.BOTH:
            return newline.join(part for part in (region.ours, region.theirs) if part)
        raise ValueError(f"No replacement for strategy {strategy}")

    def resolve(self, text: str, strategy: StrategyArg, path: Optional[str] = None) -> ResolutionResult:
        """Rewrite every conflict region in ``text``.

        Args:
            text: Document containing conflict markers
            strategy: One strategy for all regions, or one per region in order
            path: Only used in error messages

        Raises:
            NoConflictMarkersFound: The document has no conflict regions
            ConflictParseError: The markers are malformed
            ValueError: A strategy sequence does not match the number of regions
        """
        regions = self.parse(text)
        if not regions:
            raise NoConflictMarkersFound(path)

        if isinstance(strategy, ResolutionStrategy):
            strategies = [strategy] * len(regions)
        else:
            strategies = list(strategy)
            if len(strategies) != len(regions):
                raise ValueError(
                    f"Got {len(strategies)} strategies for {len(regions)} conflict region(s)"
                )

        newline = "\r\n" if "\r\n" in text else "\n"

        # Ranges refer to the original text; apply in ascending order in one pass
        pieces = []
        cursor = 0
        resolved = manual = 0
        for region, region_strategy in zip(regions, strategies):
            if region_strategy == ResolutionStrategy.MANUAL:
                manual += 1
                continue
            replacement = self._replacement(region, region_strategy, newline)
            end = region.end
            if not replacement:
                # An emptied region takes its line break with it
                if text.startswith("\r\n", end):
                    end += 2
                elif text.startswith("\n", end):
                    end += 1
            pieces.append(text[cursor:region.start])
            pieces.append(replacement)
            cursor = end
            resolved += 1
        pieces.append(text[cursor:])

        logger.debug(f"Resolved {resolved} region(s), left {manual} for manual editing")
        return ResolutionResult(text="".join(pieces), regions=regions, resolved=resolved, manual=manual)

    def resolve_file(self, path: Union[str, Path], strategy: StrategyArg) -> ResolutionResult:
        """Resolve the conflicts in a file in place.

        The file is left untouched when nothing was resolved or parsing fails.
        """
        file_path = Path(path)
        try:
            with open(file_path, "r", encoding="utf-8", newline="") as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise ConflictParseError(f"'{path}' is not a UTF-8 text file (byte {e.start})") from None

        result = self.resolve(text, strategy, path=str(path))
        if result.changed:
            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(result.text)
            logger.info(f"Wrote resolved conflicts to {file_path}")
        return result
