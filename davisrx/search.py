"""Boyer-Moore search for a fixed byte pattern."""

from __future__ import annotations

from collections.abc import Sequence


def longest_common_suffix(a: Sequence[int], b: Sequence[int]) -> int:
    """Return the length of the longest common suffix of ``a`` and ``b``."""
    length = 0
    for x, y in zip(reversed(a), reversed(b)):
        if x != y:
            break
        length += 1
    return length


class ByteFinder:
    """Finds occurrences of a byte pattern using Boyer-Moore skipping."""

    def __init__(self, pattern: Sequence[int]) -> None:
        self.pattern = bytes(pattern)
        size = len(self.pattern)
        last = size - 1

        # Distance from the last byte to the rightmost occurrence of each byte,
        # excluding the last position itself.
        self._bad_char_skip = [size] * 256
        for i, value in enumerate(self.pattern[:last]):
            self._bad_char_skip[value] = last - i

        self._good_suffix_skip = [0] * size
        last_prefix = last
        for i in range(last, -1, -1):
            if self.pattern.startswith(self.pattern[i + 1 :]):
                last_prefix = i + 1
            self._good_suffix_skip[i] = last_prefix + last - i

        for i in range(last):
            suffix = longest_common_suffix(self.pattern, self.pattern[1 : i + 1])
            if self.pattern[i - suffix] != self.pattern[last - suffix]:
                self._good_suffix_skip[last - suffix] = suffix + last - i

    def next(self, text: Sequence[int]) -> int:
        """Return the index of the first occurrence in ``text``, or -1."""
        pattern = self.pattern
        i = len(pattern) - 1
        while i < len(text):
            j = len(pattern) - 1
            while j >= 0 and text[i] == pattern[j]:
                i -= 1
                j -= 1
            if j < 0:
                return i + 1
            i += max(self._bad_char_skip[text[i]], self._good_suffix_skip[j])
        return -1