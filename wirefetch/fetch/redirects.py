"""Redirect bookkeeping for a fetcher instance."""


class RedirectManager:
    """Records which URI redirected to which and rebuilds hop chains.

    Each target has at most one predecessor; recording a target again
    overwrites it. The map only grows for the lifetime of the owner.
    """

    def __init__(self) -> None:
        """Initialize an empty redirect map."""
        self._predecessors: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._predecessors)

    def __contains__(self, uri: object) -> bool:
        return uri in self._predecessors

    def add(self, target: str, source: str) -> None:
        """Record that fetching ``source`` redirected to ``target``.

        Args:
            target: Redirect destination.
            source: URI that answered with the redirect.
        """
        self._predecessors[target] = source

    def predecessor(self, uri: str) -> str | None:
        """Get the URI that redirected to ``uri``, if any."""
        return self._predecessors.get(uri)

    def calculate(self, uri: str) -> list[str]:
        """Rebuild the chain of URIs that leads to ``uri``.

        The walk stops at the first URI already in the chain, so cyclic
        data still yields a finite answer.

        Args:
            uri: Final URI of the chain.

        Returns:
            URIs from the earliest recorded ancestor to ``uri`` inclusive.
        """
        chain = [uri]
        seen = {uri}
        current = self._predecessors.get(uri)

        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self._predecessors.get(current)

        chain.reverse()
        return chain
