"""
Typo correction for unmatched tokens.

- distance(a, b, maximum=None): Damerau–Levenshtein distance in its optimal
  string alignment form; insertions, deletions, substitutions and adjacent
  transpositions all cost one. With a maximum, computation stops as soon as
  the distance is known to exceed it (returns maximum + 1).
- suggest(token, candidates, maximum=3): every candidate within the maximum
  distance, ranked by distance, then by longest common prefix, then
  alphabetically. Candidates whose length differs from the token by more than
  the maximum are skipped without computing a distance.
- best(token, candidates, maximum=3): only the ties at the best distance.
- closest(token, aliases): the alias of one symbol that best represents it.

All functions are pure; none raise for string input.
"""
import os


def distance(source, target, /, maximum=None):
    if source == target:
        return 0
    if not source or not target:
        return max(len(source), len(target))
    if maximum is not None and abs(len(source) - len(target)) > maximum:
        return maximum + 1

    previous = None
    above = list(range(len(target) + 1))
    for row, left in enumerate(source, start=1):
        current = [row] + [0] * len(target)
        for column, right in enumerate(target, start=1):
            cost = left != right
            current[column] = min(
                above[column] + 1,          # deletion
                current[column - 1] + 1,    # insertion
                above[column - 1] + cost,   # substitution
            )
            if (
                previous is not None and
                column > 1 and
                left == target[column - 2] and
                source[row - 2] == right
            ):
                current[column] = min(current[column], previous[column - 2] + 1)  # transposition
        # transpositions reach back two rows, so both rows must be out of range
        if maximum is not None and min(current) > maximum and min(above) >= maximum:
            return maximum + 1
        previous, above = above, current

    return above[-1]


def _rank(token, candidates, maximum):
    ranked = []
    for candidate in dict.fromkeys(candidates):
        if abs(len(candidate) - len(token)) > maximum:
            continue
        if (score := distance(token, candidate, maximum)) <= maximum:
            ranked.append((score, -len(os.path.commonprefix((token, candidate))), candidate))
    ranked.sort()
    return ranked


def suggest(token, candidates, /, maximum=3):
    """
    rank near matches of token among candidates.

    >>> suggest("otp", ["--opt"])
    ['--opt']
    >>> suggest("zzz", ["--opt"])
    []
    """
    return [candidate for _, _, candidate in _rank(token, candidates, maximum)]


def best(token, candidates, /, maximum=3):
    """
    keep only the candidates sharing the best distance.
    """
    ranked = _rank(token, candidates, maximum)
    return [candidate for score, _, candidate in ranked if score == ranked[0][0]]


def closest(token, aliases, /):
    """
    pick the alias of a single symbol closest to token (distance, then
    longest common prefix, then alphabetical).
    """
    return min(aliases, key=lambda alias: (
        distance(token, alias),
        -len(os.path.commonprefix((token, alias))),
        alias
    ))


__all__ = (
    "distance",
    "suggest",
    "best",
    "closest",
)
