from .device_code import DEVICE_CODE_GRANT_TYPE, DeviceCodeExchange, infer_issuer_shape
from .outcome import TOKEN_RESPONSE_HEADERS, build_token_response, map_outcome

__all__ = [
    "DEVICE_CODE_GRANT_TYPE",
    "DeviceCodeExchange",
    "TOKEN_RESPONSE_HEADERS",
    "build_token_response",
    "infer_issuer_shape",
    "map_outcome",
]
