# Author: Bradley R. Kinnard
# MiMC sponge hasher contract - EVM creation bytecode and ABI
# the ledger's on-chain merkle tree calls this contract for every node hash

from typing import Any

from Cryptodome.Hash import keccak

from crypto.mimc import DEFAULT_ROUNDS, DEFAULT_SEED, FIELD_MODULUS, round_constants
from utils.helpers import get_logger

logger = get_logger(__name__)


FUNCTION_SIGNATURE = "MiMCSponge(uint256,uint256,uint256)"

MIMC_SPONGE_ABI: list[dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [
            {"name": "xL_in", "type": "uint256"},
            {"name": "xR_in", "type": "uint256"},
            {"name": "k", "type": "uint256"},
        ],
        "name": "MiMCSponge",
        "outputs": [
            {"name": "xL", "type": "uint256"},
            {"name": "xR", "type": "uint256"},
        ],
        "payable": False,
        "stateMutability": "pure",
        "type": "function",
    },
]

# opcodes
DIV = 0x04
ADDMOD = 0x08
MULMOD = 0x09
EQ = 0x14
CALLDATACOPY = 0x37
CODECOPY = 0x39
MLOAD = 0x51
MSTORE = 0x52
JUMPI = 0x57
JUMPDEST = 0x5B
PUSH1 = 0x60
PUSH2 = 0x61
DUP1 = 0x80
SWAP1 = 0x90
RETURN = 0xF3
INVALID = 0xFE


def function_selector(signature: str = FUNCTION_SIGNATURE) -> bytes:
    """first four bytes of keccak256(signature)."""
    return keccak.new(digest_bits=256, data=signature.encode("ascii")).digest()[:4]


class Assembler:
    """
    minimal EVM assembler: pushes, stack ops and forward labels.

    labels are pushed as PUSH2 placeholders and patched in assemble().
    """

    def __init__(self):
        self._code = bytearray()
        self._labels: dict[str, int] = {}
        self._refs: list[tuple[int, str]] = []

    def op(self, *opcodes: int) -> "Assembler":
        self._code.extend(opcodes)
        return self

    def push(self, value: int | bytes) -> "Assembler":
        if isinstance(value, int):
            if value < 0:
                raise ValueError("cannot push a negative value")
            value = value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
        if not 1 <= len(value) <= 32:
            raise ValueError(f"push takes 1 to 32 bytes, got {len(value)}")
        self._code.append(PUSH1 + len(value) - 1)
        self._code.extend(value)
        return self

    def dup(self, n: int) -> "Assembler":
        if not 1 <= n <= 16:
            raise ValueError(f"no DUP{n}")
        return self.op(DUP1 + n - 1)

    def swap(self, n: int) -> "Assembler":
        if not 1 <= n <= 16:
            raise ValueError(f"no SWAP{n}")
        return self.op(SWAP1 + n - 1)

    def jumpi(self, label: str) -> "Assembler":
        self._code.append(PUSH2)
        self._refs.append((len(self._code), label))
        self._code.extend(b"\x00\x00")
        return self.op(JUMPI)

    def label(self, name: str) -> "Assembler":
        if name in self._labels:
            raise ValueError(f"label {name} defined twice")
        self._labels[name] = len(self._code)
        return self.op(JUMPDEST)

    def assemble(self) -> bytes:
        code = bytearray(self._code)
        for offset, name in self._refs:
            if name not in self._labels:
                raise ValueError(f"undefined label {name}")
            code[offset:offset + 2] = self._labels[name].to_bytes(2, "big")
        return bytes(code)


def runtime_code(seed: str = DEFAULT_SEED, rounds: int = DEFAULT_ROUNDS) -> bytes:
    """
    the deployed contract body.

    accepts only MiMCSponge(xL, xR, k) and returns the permuted (xL, xR),
    the same values MiMCSponge.hash computes off-chain.
    """
    constants = round_constants(seed, rounds)
    asm = Assembler()

    # copy selector + three words to memory, dispatch on the selector
    asm.push(0x64).push(0).push(0).op(CALLDATACOPY)
    asm.push(1 << 224).push(0).op(MLOAD, DIV)
    asm.push(function_selector()).op(EQ)
    asm.jumpi("start")
    asm.op(INVALID)

    # stack from here on, top first: xL xR k q
    asm.label("start")
    asm.push(FIELD_MODULUS)
    asm.push(0x44).op(MLOAD)
    asm.push(0x24).op(MLOAD)
    asm.push(0x04).op(MLOAD)

    last = len(constants) - 1
    for i, c in enumerate(constants):
        # t = xL + k + c
        asm.dup(4).dup(4).dup(2).dup(4).push(c).op(ADDMOD, ADDMOD)
        # t^5
        asm.dup(5).swap(1).dup(2).dup(1).dup(3).dup(1).op(MULMOD).dup(1).op(MULMOD, MULMOD)
        # xR + t^5, with xL left underneath
        asm.dup(5).swap(2).swap(3).op(ADDMOD)
        if i == last:
            asm.swap(1)

    asm.push(0).op(MSTORE)
    asm.push(0x20).op(MSTORE)
    asm.push(0x40).push(0).op(RETURN)

    return asm.assemble()


def _loader(body_length: int, loader_length: int) -> bytes:
    asm = Assembler()
    asm.push(body_length).dup(1).push(loader_length).push(0).op(CODECOPY)
    asm.push(0).op(RETURN)
    return asm.assemble()


def create_code(seed: str = DEFAULT_SEED, rounds: int = DEFAULT_ROUNDS) -> str:
    """creation bytecode (loader + runtime) as a 0x-prefixed hex string."""
    body = runtime_code(seed, rounds)

    # the loader encodes its own length, so iterate until it stops changing
    loader_length = 0
    loader = _loader(len(body), loader_length)
    while len(loader) != loader_length:
        loader_length = len(loader)
        loader = _loader(len(body), loader_length)

    logger.debug(f"built mimc sponge contract: {len(body)} byte runtime, {rounds} rounds")
    return "0x" + (loader + body).hex()
