class BatchingRewriter:
    """
    Batches multiple span rewrites against a single source buffer.
    Each rewrite is a tuple: (offset, length, replacement_text), with offsets in bytes.
    Rewrites may nest: when one rewrite's span contains another's, only the outer
    rewrite is applied, so outer replacement text should be built with `render_span`,
    which applies the nested rewrites first.
    Zero-length rewrites are insertions; at equal offsets they land before any replacement.
    Partially overlapping rewrites are rejected.
    """

    def __init__(self, content: bytes):
        self.content = content
        self.rewrites: set[tuple[int, int, str]] = set()

    def add_rewrite(self, offset: int, length: int, replacement_text: str):
        """Add a rewrite operation for the buffer."""
        if offset < 0 or length < 0 or offset + length > len(self.content):
            raise ValueError(f"Rewrite out of bounds: offset={offset}, length={length}")
        self.rewrites.add((offset, length, replacement_text))

    def add_insertion(self, offset: int, text: str):
        self.add_rewrite(offset, 0, text)

    def has_rewrites(self) -> bool:
        return bool(self.rewrites)

    def outermost_rewrites_within(self, lo: int, hi: int) -> list[tuple[int, int, str]]:
        within = [r for r in self.rewrites if lo <= r[0] and r[0] + r[1] <= hi]
        # Insertions sort ahead of replacements starting at the same offset,
        # and longer replacements ahead of the ones they contain.
        within.sort(key=lambda r: (r[0], r[1] != 0, -r[1]))
        kept: list[tuple[int, int, str]] = []
        kept_end = lo
        for offset, length, text in within:
            end = offset + length
            if offset < kept_end:
                if end <= kept_end:
                    continue  # nested inside an outer rewrite
                raise ValueError(
                    f"Overlapping rewrites at offset={offset}, length={length}; "
                    f"previous rewrite ends at {kept_end}"
                )
            kept.append((offset, length, text))
            kept_end = max(kept_end, end)
        return kept

    def render_span(self, lo: int, hi: int) -> str:
        """The text of content[lo:hi] with every rewrite inside that span applied."""
        pieces: list[bytes] = []
        cursor = lo
        for offset, length, text in self.outermost_rewrites_within(lo, hi):
            pieces.append(self.content[cursor:offset])
            pieces.append(text.encode())
            cursor = offset + length
        pieces.append(self.content[cursor:hi])
        return b"".join(pieces).decode("utf-8")

    def apply_rewrites(self) -> bytes:
        if not self.rewrites:
            return self.content
        return self.render_span(0, len(self.content)).encode()
