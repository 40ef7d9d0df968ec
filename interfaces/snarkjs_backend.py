# Author: Bradley R. Kinnard
# snarkjs adapter - groth16 fullprove/verify through the snarkjs CLI

import asyncio
import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiofiles

from transfer.proof_engine import BackendError
from utils.helpers import canonical_json, get_logger


logger = get_logger(__name__)

# messages snarkjs prints when it rejects a proof rather than failing
_REJECTIONS = (
    "Invalid proof",
    "Groth16 proof is not well constructed",
    "Public inputs are not valid",
)


@dataclass
class SnarkjsConfig:
    """how to reach the snarkjs CLI."""
    binary: str = "snarkjs"
    timeout: float = 600.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SnarkjsConfig":
        prover = config.get("prover", {})
        return cls(
            binary=prover.get("snarkjs_bin", "snarkjs"),
            timeout=float(prover.get("timeout", 600)),
        )


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}"


class SnarkjsBackend:
    """
    runs snarkjs as a child process.

    every call works in its own temp directory, so concurrent proofs
    never share files. the child is killed on timeout or cancellation.
    """

    def __init__(self, config: SnarkjsConfig | None = None):
        self._config = config or SnarkjsConfig()

    async def _run(self, *args: str) -> CommandResult:
        cmd = [self._config.binary, *args]
        logger.debug(f"running {' '.join(cmd[:3])}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise BackendError(f"snarkjs not found: {self._config.binary}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(), timeout=self._config.timeout
            )
        except asyncio.TimeoutError as e:
            await self._kill(proc)
            raise BackendError(f"snarkjs timed out after {self._config.timeout}s") from e
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        return CommandResult(
            returncode=proc.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()

    @staticmethod
    async def _write_json(path: Path, data: Any) -> None:
        async with aiofiles.open(path, "w") as f:
            await f.write(canonical_json(data))

    @staticmethod
    async def _read_json(path: Path) -> Any:
        async with aiofiles.open(path, "r") as f:
            content = await f.read()
        return json.loads(content)

    async def full_prove(
        self,
        circuit_input: dict[str, Any],
        wasm_path: Path,
        zkey_path: Path,
    ) -> tuple[dict[str, Any], list[str]]:
        """snarkjs groth16 fullprove: witness calculation and proving in one step."""
        with tempfile.TemporaryDirectory(prefix="transfer_prove_") as tmp:
            work = Path(tmp)
            input_file = work / "input.json"
            proof_file = work / "proof.json"
            public_file = work / "public.json"

            await self._write_json(input_file, circuit_input)

            result = await self._run(
                "groth16", "fullprove",
                str(input_file), str(wasm_path), str(zkey_path),
                str(proof_file), str(public_file),
            )
            if result.returncode != 0:
                raise BackendError(f"fullprove exited {result.returncode}: {result.stderr.strip()}")

            try:
                proof = await self._read_json(proof_file)
                public_signals = await self._read_json(public_file)
            except (OSError, json.JSONDecodeError) as e:
                raise BackendError(f"fullprove produced no readable output: {e}") from e

        return proof, public_signals

    async def verify(
        self,
        verification_key: dict[str, Any],
        public_signals: list[str],
        proof: dict[str, Any],
    ) -> bool:
        """snarkjs groth16 verify. False means the proof is invalid."""
        with tempfile.TemporaryDirectory(prefix="transfer_verify_") as tmp:
            work = Path(tmp)
            vkey_file = work / "verification_key.json"
            public_file = work / "public.json"
            proof_file = work / "proof.json"

            await self._write_json(vkey_file, verification_key)
            await self._write_json(public_file, public_signals)
            await self._write_json(proof_file, proof)

            result = await self._run(
                "groth16", "verify",
                str(vkey_file), str(public_file), str(proof_file),
            )

        if result.returncode == 0 and "OK" in result.output:
            return True
        if result.returncode in (0, 1) and any(m in result.output for m in _REJECTIONS):
            logger.debug(f"snarkjs rejected proof: {result.output.strip()}")
            return False
        raise BackendError(f"verify exited {result.returncode}: {result.stderr.strip()}")
