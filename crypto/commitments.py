# Author: Bradley R. Kinnard
# commitment hasher - MiMC sponge commitments for authorization secrets
# init-then-use: hashing before init() raises, it never returns a placeholder

import asyncio
import copy
from typing import Iterable

from crypto.mimc import DEFAULT_ROUNDS, DEFAULT_SEED, MiMCSponge
from crypto.mimc_contract import MIMC_SPONGE_ABI, create_code
from utils.helpers import get_logger

logger = get_logger(__name__)


class UninitializedHasherError(RuntimeError):
    """raised when a hash is requested before init() has completed."""
    pass


class CommitmentHasher:
    """
    MiMC sponge commitments over field elements.

    usage:
    1. hasher = CommitmentHasher(); await hasher.init()
    2. hasher.simple_hash(secret) -> commitment (decimal string)
    3. hasher.hash(left, right) for merkle nodes

    every hash uses the same sponge key (0 by default) so commitments match
    the ones recomputed inside the transfer circuit.
    """

    def __init__(
        self,
        seed: str = DEFAULT_SEED,
        rounds: int = DEFAULT_ROUNDS,
        key: int = 0,
    ):
        self._seed = seed
        self._rounds = rounds
        self._key = key
        self._sponge: MiMCSponge | None = None
        self._init_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._sponge is not None

    async def init(self) -> None:
        """
        build the sponge. safe to call repeatedly or concurrently;
        only the first caller derives the constants.
        """
        async with self._init_lock:
            if self._sponge is not None:
                return
            self._sponge = await asyncio.to_thread(
                MiMCSponge.from_seed, self._seed, self._rounds
            )
        logger.info(f"mimc sponge ready ({self._rounds} rounds)")

    def _require_sponge(self) -> MiMCSponge:
        if self._sponge is None:
            raise UninitializedHasherError(
                "MiMC sponge not initialized. Call init() first."
            )
        return self._sponge

    def multi_hash(self, inputs: Iterable[int | str]) -> str:
        """sponge hash of an ordered sequence, as a decimal string."""
        sponge = self._require_sponge()
        return str(sponge.multi_hash(list(inputs), self._key))

    def hash(self, left: int | str, right: int | str) -> str:
        """two-to-one hash for merkle nodes."""
        return self.multi_hash([left, right])

    def simple_hash(self, value: int | str) -> str:
        """commitment to a single element, e.g. an auth secret."""
        return self.multi_hash([value])

    def contract_bytecode(self) -> str:
        """creation bytecode of the on-chain hasher with this seed and round count."""
        return create_code(self._seed, self._rounds)

    @staticmethod
    def contract_abi() -> list[dict]:
        return copy.deepcopy(MIMC_SPONGE_ABI)
