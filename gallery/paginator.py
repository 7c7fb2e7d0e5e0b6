"""
Client-side reveal window over a fully fetched result set.

The whole matching set arrives in one round trip; the window only grows the
visible prefix in fixed steps as the viewer scrolls near its end.
"""

DEFAULT_PAGE_SIZE = 50


class ResultWindow:
    """Holds one generation of results and the revealed prefix length."""

    def __init__(self, page_size=DEFAULT_PAGE_SIZE):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._matches = []
        self._revealed = 0
        self.loading = False

    @property
    def all_matches(self):
        return list(self._matches)

    @property
    def total(self):
        return len(self._matches)

    @property
    def revealed_count(self):
        return self._revealed

    @property
    def visible(self):
        return self._matches[:self._revealed]

    @property
    def has_more(self):
        return self._revealed < len(self._matches)

    def begin_loading(self):
        """Discard the current generation while a new fetch is in flight."""
        self._matches = []
        self._revealed = 0
        self.loading = True

    def replace(self, matches):
        """Install a new generation; the reveal window restarts at one page."""
        self._matches = list(matches)
        self._revealed = min(self.page_size, len(self._matches))
        self.loading = False

    def advance(self):
        """Reveal the next page. Safe to call repeatedly; never past the end.

        Returns True when more records became visible.
        """
        if self.loading:
            return False
        revealed = min(self._revealed + self.page_size, len(self._matches))
        if revealed == self._revealed:
            return False
        self._revealed = revealed
        return True

    @property
    def status_text(self):
        if not self.has_more:
            return "End of Gallery"
        return f"Loaded {self._revealed} of {len(self._matches)}"
