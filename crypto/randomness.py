# Author: Bradley R. Kinnard
# randomness source for encryption blinding factors

import math
import secrets


def random_below(bound: int) -> int:
    """uniform integer in [0, bound) from the OS CSPRNG."""
    if bound <= 0:
        raise ValueError("bound must be positive")
    return secrets.randbelow(bound)


def random_blinding(n: int) -> int:
    """
    uniform unit of Z_n^*, for paillier blinding.

    zero is rejected along with anything sharing a factor with n. phe
    silently swaps a zero r for its own, which would desync the witness.
    """
    if n <= 2:
        raise ValueError("modulus too small for blinding")
    while True:
        r = random_below(n)
        if r != 0 and math.gcd(r, n) == 1:
            return r
