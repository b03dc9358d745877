class QueryState:
    """
    Current free-text filter. Read on every derivation; no validation or
    debouncing happens here.
    """

    def __init__(self, text: str = ""):
        self._text = text or ""

    @property
    def text(self) -> str:
        return self._text

    def set_query(self, text: str | None) -> None:
        self._text = text or ""

    def __repr__(self) -> str:
        return f"QueryState({self._text!r})"
