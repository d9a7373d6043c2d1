from typing import Any, Dict, List, Optional

from .models import SignalSet
from .normalize import clean, is_number

NUMERIC_FIELDS = ["screenWidth", "screenHeight", "pixelRatio", "hardwareConcurrency"]
OPTIONAL_STR_FIELDS = ["gpuRenderer", "gpuVendor", "fullUserAgent"]
SERVER_STR_FIELDS = ["deviceBrand", "deviceModel", "deviceType", "os", "browser", "userAgent"]
HINT_STR_FIELDS = ["model", "brand", "platformVersion", "architecture"]


def _check_strings(data: Dict[str, Any], fields: List[str], prefix: str, errors: List[str]) -> None:
    for f in fields:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{prefix}{f}' must be a string if provided")


def validate_payload(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Every signal is optional; present values must have the right type.
    """
    errors: List[str] = []
    if not isinstance(data, dict):
        return ["Payload must be a JSON object"]

    for f in NUMERIC_FIELDS:
        v = data.get(f)
        if v is None:
            continue
        if not is_number(v):
            errors.append(f"Field '{f}' must be a number if provided")
        elif v <= 0:
            errors.append(f"Field '{f}' must be positive")

    _check_strings(data, OPTIONAL_STR_FIELDS, "", errors)

    server = data.get("serverData")
    if server is not None:
        if not isinstance(server, dict):
            errors.append("Field 'serverData' must be an object if provided")
        else:
            _check_strings(server, SERVER_STR_FIELDS, "serverData.", errors)

    hints = data.get("clientHintsData")
    if hints is not None:
        if not isinstance(hints, dict):
            errors.append("Field 'clientHintsData' must be an object if provided")
        else:
            _check_strings(hints, HINT_STR_FIELDS, "clientHintsData.", errors)
            if hints.get("brands") is not None and not isinstance(hints["brands"], list):
                errors.append("Field 'clientHintsData.brands' must be a list if provided")

    return errors


def _number(v: Any) -> Optional[float]:
    return v if is_number(v) and v > 0 else None


def _integer(v: Any) -> Optional[int]:
    n = _number(v)
    return int(n) if n is not None and float(n).is_integer() else None


def _string(v: Any) -> Optional[str]:
    return clean(v) if isinstance(v, str) else None


def signals_from_payload(data: Dict[str, Any]) -> SignalSet:
    """
    Build a SignalSet from a collector payload.

    Values of the wrong type are dropped rather than rejected, so a partly
    broken payload still resolves on whatever signals survive.
    """
    server = data.get("serverData") if isinstance(data.get("serverData"), dict) else {}
    hints = data.get("clientHintsData") if isinstance(data.get("clientHintsData"), dict) else {}

    hint_brand = _string(hints.get("brand"))
    if hint_brand is None and isinstance(hints.get("brands"), list) and hints["brands"]:
        first = hints["brands"][0]
        if isinstance(first, dict):
            hint_brand = _string(first.get("brand"))

    return SignalSet(
        brand=_string(server.get("deviceBrand")),
        model=_string(server.get("deviceModel")),
        screen_width=_integer(data.get("screenWidth")),
        screen_height=_integer(data.get("screenHeight")),
        pixel_ratio=_number(data.get("pixelRatio")),
        gpu_renderer=_string(data.get("gpuRenderer")),
        gpu_vendor=_string(data.get("gpuVendor")),
        hardware_concurrency=_integer(data.get("hardwareConcurrency")),
        client_hints_model=_string(hints.get("model")),
        client_hints_brand=hint_brand,
        os=_string(server.get("os")),
        browser=_string(server.get("browser")),
        client_hints_platform_version=_string(hints.get("platformVersion")),
        client_hints_architecture=_string(hints.get("architecture")),
    )
