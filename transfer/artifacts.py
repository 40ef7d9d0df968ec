# Author: Bradley R. Kinnard
# proof artifact store - persisted (proof, public signals) pairs per aggregation index

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiofiles
import jsonschema

from config.schemas import public_signals_schema
from transfer.proof_engine import Groth16Proof
from utils.helpers import canonical_json, get_logger


logger = get_logger(__name__)

_PROOF_NAME = re.compile(r"^proof_(\d+)\.json$")


class ArtifactStoreError(OSError):
    """artifact could not be written, read or parsed."""
    pass


@dataclass(frozen=True)
class ProofArtifact:
    """one persisted transfer proof. advisory until verified."""
    index: int
    proof: Groth16Proof
    public_signals: tuple[str, ...]


class ProofArtifactStore:
    """
    two files per index: proof_{index}.json and public_signals_{index}.json,
    each the compact JSON of the in-memory value.
    """

    def __init__(self, directory: Path | str):
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def proof_path(self, index: int) -> Path:
        return self._dir / f"proof_{index}.json"

    def signals_path(self, index: int) -> Path:
        return self._dir / f"public_signals_{index}.json"

    async def _write(self, path: Path, data: Any) -> None:
        async with aiofiles.open(path, "w") as f:
            await f.write(canonical_json(data))

    async def _read(self, path: Path) -> Any:
        async with aiofiles.open(path, "r") as f:
            content = await f.read()
        return json.loads(content)

    def _discard(self, index: int) -> None:
        self.proof_path(index).unlink(missing_ok=True)
        self.signals_path(index).unlink(missing_ok=True)

    async def save(self, index: int, proof: Groth16Proof, public_signals) -> tuple[Path, Path]:
        """
        write both files. if either write fails or is cancelled, both are
        removed, so an index never holds half an artifact.
        """
        proof_path = self.proof_path(index)
        signals_path = self.signals_path(index)

        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArtifactStoreError(f"cannot create artifact directory {self._dir}: {e}") from e

        stage = "proof"
        try:
            await self._write(proof_path, proof.to_dict())
            stage = "public signals"
            await self._write(signals_path, [str(s) for s in public_signals])
        except OSError as e:
            self._discard(index)
            raise ArtifactStoreError(f"failed to persist {stage} {index}: {e}") from e
        except BaseException:
            self._discard(index)
            raise

        logger.info(f"saved transfer proof artifact {index} to {self._dir}")
        return proof_path, signals_path

    async def load(self, index: int) -> ProofArtifact:
        """read back one artifact."""
        try:
            proof_doc = await self._read(self.proof_path(index))
            signals = await self._read(self.signals_path(index))
        except FileNotFoundError as e:
            raise ArtifactStoreError(f"no artifact for index {index}: {e.filename}") from e
        except json.JSONDecodeError as e:
            raise ArtifactStoreError(f"corrupted artifact {index}: {e}") from e
        except OSError as e:
            raise ArtifactStoreError(f"cannot read artifact {index}: {e}") from e

        try:
            proof = Groth16Proof.from_dict(proof_doc)
            jsonschema.validate(instance=signals, schema=public_signals_schema)
        except jsonschema.ValidationError as e:
            raise ArtifactStoreError(f"malformed artifact {index}: {e.message}") from e

        return ProofArtifact(index=index, proof=proof, public_signals=tuple(signals))

    def indices(self) -> list[int]:
        """indices holding both files, ascending."""
        if not self._dir.is_dir():
            return []
        found = []
        for p in self._dir.iterdir():
            m = _PROOF_NAME.match(p.name)
            if m and self.signals_path(int(m.group(1))).is_file():
                found.append(int(m.group(1)))
        return sorted(found)

    async def verify_all(self, engine, verification_key=None) -> dict[int, bool]:
        """batch-verify every stored artifact."""
        results: dict[int, bool] = {}
        for index in self.indices():
            artifact = await self.load(index)
            results[index] = await engine.verify(
                artifact.proof, artifact.public_signals, verification_key
            )

        n_valid = sum(results.values())
        logger.info(f"verified {len(results)} stored artifacts, {n_valid} valid")
        return results
