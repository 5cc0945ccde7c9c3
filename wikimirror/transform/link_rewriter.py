"""Rewrites href/src attributes so links resolve inside the generated tree."""

import re

from .pipeline import Transform, TransformPipeline

# A relative path: one or more segments with no quote, fragment, scheme colon,
# or slash inside a segment. A leading "/" can't match, so absolute links are left alone.
_REL_SEGMENTS = r'[^"#:/?]+(?:/[^"#:/?]+)*'

# Same, but no segment may contain a dot (i.e. no file extension anywhere).
_BARE_SEGMENTS = r'[^"#:/?.]+(?:/[^"#:/?.]+)*'

_IMG_ABS_SRC_RE = re.compile(r'(<img\b[^>]*?\bsrc=")(/[^"]*)(")')


class SnapshotLinkRewriter(Transform):
    """href="a/b.md.old" (or "a/b.md") -> href="a/b.html", keeping any "#fragment"."""

    def __init__(self, suffixes: tuple[str, ...] = (".md.old", ".md")):
        # Longest suffix first so ".md.old" never leaves a stray ".old".
        ordered = sorted(suffixes, key=len, reverse=True)
        alternation = "|".join(re.escape(s) for s in ordered)
        self._re = re.compile(rf'(href=")({_REL_SEGMENTS})(?:{alternation})((?:#[^"]*)?")')

    def apply(self, content: str) -> str:
        return self._re.sub(r"\1\2.html\3", content)


class ExtensionlessLinkRewriter(Transform):
    """href="notes/todo" -> href="notes/todo.html" for bare wiki page names.

    Targets ending in "/" are directory links and are left unchanged.
    """

    _re = re.compile(rf'(href=")({_BARE_SEGMENTS})(")')

    def apply(self, content: str) -> str:
        return self._re.sub(r"\1\2.html\3", content)


class ImageRootRewriter(Transform):
    """<img src="/img/a.png"> -> <img src="<output_root>/img/a.png">."""

    def __init__(self, output_root: str):
        self.output_root = output_root.rstrip("/")

    def apply(self, content: str) -> str:
        return _IMG_ABS_SRC_RE.sub(self._rewrite_match, content)

    def _rewrite_match(self, m: re.Match) -> str:
        path = m.group(2)
        if self.output_root and (path == self.output_root or path.startswith(self.output_root + "/")):
            return m.group(0)
        return f"{m.group(1)}{self.output_root}{path}{m.group(3)}"


def default_link_pipeline(output_root: str) -> TransformPipeline:
    """The three rewrite rules in their required order."""
    return TransformPipeline([
        SnapshotLinkRewriter(),
        ExtensionlessLinkRewriter(),
        ImageRootRewriter(output_root),
    ])
