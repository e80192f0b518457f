"""
Image assets embedded in rendered contracts.

Bundled PNG files win; otherwise a base64 value from the environment is used.
Anything missing or undecodable leaves the asset unset and the renderer falls
back to text.
"""

import base64
import binascii
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).parent / "assets"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@dataclass(frozen=True)
class ContractAssets:
    signature_png: Optional[bytes] = None
    logo_png: Optional[bytes] = None


def _read_bundled(name: str, assets_dir: Path) -> Optional[bytes]:
    path = assets_dir / name
    if not path.is_file():
        return None
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.warning(f"Could not read bundled asset {path}: {e}")
        return None
    return data if data.startswith(PNG_MAGIC) else None


def _decode_base64(label: str, raw: str) -> Optional[bytes]:
    if not raw:
        return None
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Ignoring {label}: not valid base64 ({e})")
        return None
    if not data.startswith(PNG_MAGIC):
        logger.warning(f"Ignoring {label}: not a PNG image")
        return None
    return data


@lru_cache(maxsize=8)
def load_assets(
    signature_base64: str = "",
    logo_base64: str = "",
    assets_dir: Path = ASSETS_DIR,
) -> ContractAssets:
    """Resolve assets once per process for a given configuration."""
    signature = _read_bundled("provider_signature.png", assets_dir) or _decode_base64(
        "PROVIDER_SIGNATURE_BASE64", signature_base64
    )
    logo = _read_bundled("logo.png", assets_dir) or _decode_base64("PROVIDER_LOGO_BASE64", logo_base64)

    logger.info(
        "Contract assets loaded (signature=%s, logo=%s)",
        "yes" if signature else "text-only",
        "yes" if logo else "text-only",
    )
    return ContractAssets(signature_png=signature, logo_png=logo)
