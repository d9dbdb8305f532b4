"""MORP: commitment, nullifier and private-routing core.

Public API:
- Service: MorpService, MorpConfig
- Proofs: Proof, ProofGenerator, IntegrityVerifier, ProofCodec, aggregate
- Commitments: commit, open_commitment, NullifierDeriver, stealth helpers
- Anchor: build_root, build_path, verify_path
- Routing: RoutePlanner, RouteExecutor, PrivacyProfile
"""
from .anchor import build_path, build_root, verify_path
from .commit import NullifierDeriver, commit, create_zk_commitment, open_commitment, verify_zk_commitment
from .config import MorpConfig
from .core import KeyRing, MorpError, emit_receipt
from .proof import IntegrityVerifier, Proof, ProofCodec, ProofGenerator, aggregate
from .route import PrivacyProfile, RouteExecutor, RoutePlanner
from .service import MorpService

__version__ = "2.1.0"

__all__ = [
    # Service
    "MorpService",
    "MorpConfig",
    # Core
    "KeyRing",
    "MorpError",
    "emit_receipt",
    # Commitments
    "commit",
    "open_commitment",
    "NullifierDeriver",
    "create_zk_commitment",
    "verify_zk_commitment",
    # Proofs
    "Proof",
    "ProofGenerator",
    "IntegrityVerifier",
    "ProofCodec",
    "aggregate",
    # Anchor
    "build_root",
    "build_path",
    "verify_path",
    # Routing
    "RoutePlanner",
    "RouteExecutor",
    "PrivacyProfile",
]
