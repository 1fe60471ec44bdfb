"""
Longest-common-subsequence helpers for comparing blocks of note text.

Everything here is pure and total: any pair of strings (including empty ones)
produces a result, nothing raises.
"""


def lcs_length(a: str, b: str) -> int:
    """
    Length of the longest common subsequence of two strings.

    Uses the standard O(n*m) dynamic program with a single rolling row sized to
    the shorter input, so memory stays O(min(n, m)) even for large paragraphs.

    Args:
        a: First string.
        b: Second string.

    Returns:
        Number of characters in the longest common subsequence.
    """
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return 0

    row = [0] * (len(b) + 1)
    for char_a in a:
        diagonal = 0  # row[j - 1] from the previous iteration of the outer loop
        for j, char_b in enumerate(b, start=1):
            above = row[j]
            if char_a == char_b:
                row[j] = diagonal + 1
            elif row[j - 1] > above:
                row[j] = row[j - 1]
            diagonal = above
    return row[-1]


def similarity(a: str, b: str) -> float:
    """
    Normalized similarity ratio in [0, 1]: 2 * LCS(a, b) / (len(a) + len(b)).

    Two empty strings are identical (1.0); exactly one empty string shares
    nothing with the other (0.0).
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return 2.0 * lcs_length(a, b) / (len(a) + len(b))


def similarity_upper_bound(len_a: int, len_b: int) -> float:
    """Best ratio two strings of these lengths could reach (LCS == shorter length)."""
    if len_a == 0 and len_b == 0:
        return 1.0
    return 2.0 * min(len_a, len_b) / (len_a + len_b)


def lcs_match_mask(a: str, b: str) -> list[bool]:
    """
    Mark the characters of ``a`` that take part in one LCS alignment with ``b``.

    A shared prefix and suffix always belong to some longest common subsequence,
    so they are marked directly and only the differing middle goes through the
    quadratic table. Ties in the table walk advance through ``a`` first.

    Args:
        a: String whose characters are classified.
        b: String ``a`` is aligned against.

    Returns:
        List of len(a) booleans, True where a[i] is matched to a character of b.
    """
    n, m = len(a), len(b)
    mask = [False] * n

    prefix = 0
    while prefix < n and prefix < m and a[prefix] == b[prefix]:
        mask[prefix] = True
        prefix += 1

    suffix = 0
    while (
        suffix < n - prefix
        and suffix < m - prefix
        and a[n - 1 - suffix] == b[m - 1 - suffix]
    ):
        mask[n - 1 - suffix] = True
        suffix += 1

    middle_a = a[prefix:n - suffix]
    middle_b = b[prefix:m - suffix]
    if middle_a and middle_b:
        for offset, matched in enumerate(_aligned_positions(middle_a, middle_b)):
            if matched:
                mask[prefix + offset] = True
    return mask


def _aligned_positions(a: str, b: str) -> list[bool]:
    """Full-table LCS alignment of ``a`` against ``b`` (suffix formulation)."""
    n, m = len(a), len(b)
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row = table[i]
        below = table[i + 1]
        char_a = a[i]
        for j in range(m - 1, -1, -1):
            if char_a == b[j]:
                row[j] = below[j + 1] + 1
            elif below[j] >= row[j + 1]:
                row[j] = below[j]
            else:
                row[j] = row[j + 1]

    matched = [False] * n
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            matched[i] = True
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            i += 1
        else:
            j += 1
    return matched
