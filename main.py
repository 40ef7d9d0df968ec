# Author: Bradley R. Kinnard
# confidential transfer command-line entry point

import argparse
import asyncio
import json
import sys
from pathlib import Path

import jsonschema

from crypto.commitments import CommitmentHasher
from crypto.homomorphic import generate_keypair
from transfer.orchestrator import TransferOrchestrator
from transfer.artifacts import ArtifactStoreError, ProofArtifactStore
from transfer.proof_engine import Groth16Proof, VerificationKeyError
from utils.helpers import DEFAULT_CONFIG_PATH, get_logger, load_system_config, set_log_level


logger = get_logger(__name__)


def cmd_keygen(args: argparse.Namespace, config: dict) -> int:
    """write a fresh paillier keypair as JSON."""
    bits = args.bits or config.get("keys", {}).get("n_length", 2048)
    keys = generate_keypair(n_length=bits)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as f:
        json.dump(keys.to_dict(include_private=True), f, indent=2)

    logger.info(f"wrote {bits}-bit keypair to {out}")
    return 0


def _hasher(config: dict) -> CommitmentHasher:
    hasher_cfg = config.get("hasher", {})
    return CommitmentHasher(
        seed=hasher_cfg.get("seed", "mimcsponge"),
        rounds=hasher_cfg.get("rounds", 220),
        key=hasher_cfg.get("key", 0),
    )


async def cmd_commit(args: argparse.Namespace, config: dict) -> int:
    """print MiMC(secret)."""
    hasher = _hasher(config)
    await hasher.init()
    print(hasher.simple_hash(args.secret))
    return 0


async def cmd_verify(args: argparse.Namespace, config: dict) -> int:
    """verify one proof/public-signals pair."""
    orchestrator = TransferOrchestrator.from_config(config)

    try:
        with open(args.proof, "r") as f:
            proof = Groth16Proof.from_dict(json.load(f))
        with open(args.signals, "r") as f:
            signals = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"cannot read proof input: {e}")
        return 2
    except jsonschema.ValidationError as e:
        logger.error(f"malformed proof document {args.proof}: {e.message}")
        return 2

    valid = await orchestrator.engine.verify(proof, signals, args.vkey)
    print("valid" if valid else "invalid")
    return 0 if valid else 1


def cmd_hasher_contract(args: argparse.Namespace, config: dict) -> int:
    """emit the MiMC hasher contract's ABI and creation bytecode."""
    hasher = _hasher(config)
    doc = {"abi": hasher.contract_abi(), "bytecode": hasher.contract_bytecode()}

    if args.out is None:
        print(json.dumps(doc))
        return 0

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w") as f:
        json.dump(doc, f, indent=2)
    logger.info(f"wrote mimc hasher contract to {out}")
    return 0


async def cmd_verify_batch(args: argparse.Namespace, config: dict) -> int:
    """verify every persisted aggregation artifact in a directory."""
    orchestrator = TransferOrchestrator.from_config(config)
    store = ProofArtifactStore(args.dir or config["aggregation"]["artifact_dir"])

    results = await store.verify_all(orchestrator.engine, args.vkey)
    for index, valid in results.items():
        print(f"{index}\t{'valid' if valid else 'invalid'}")

    return 0 if results and all(results.values()) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="confidential transfer tooling")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="config path")
    parser.add_argument("--log-level", default=None, help="override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("keygen", help="generate a paillier keypair")
    p.add_argument("--bits", type=int, default=None)
    p.add_argument("--out", required=True)

    p = sub.add_parser("commit", help="print the MiMC commitment of a secret")
    p.add_argument("secret")

    p = sub.add_parser("verify", help="verify a transfer proof")
    p.add_argument("--proof", required=True)
    p.add_argument("--signals", required=True)
    p.add_argument("--vkey", default=None)

    p = sub.add_parser("hasher-contract", help="emit the MiMC hasher contract ABI and bytecode")
    p.add_argument("--out", default=None)

    p = sub.add_parser("verify-batch", help="verify stored aggregation artifacts")
    p.add_argument("--dir", default=None)
    p.add_argument("--vkey", default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_system_config(args.config)
    set_log_level(args.log_level or config.get("logging", {}).get("level", "INFO"))

    try:
        if args.command == "keygen":
            return cmd_keygen(args, config)
        if args.command == "commit":
            return asyncio.run(cmd_commit(args, config))
        if args.command == "verify":
            return asyncio.run(cmd_verify(args, config))
        if args.command == "verify-batch":
            return asyncio.run(cmd_verify_batch(args, config))
        if args.command == "hasher-contract":
            return cmd_hasher_contract(args, config)
    except (VerificationKeyError, ArtifactStoreError) as e:
        logger.error(str(e))
        return 2

    return 1


if __name__ == "__main__":
    sys.exit(main())
