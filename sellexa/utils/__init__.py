from sellexa.utils.status import Status
from sellexa.utils.response_format import ApiResult, create_api_result, create_api_error

__all__ = ["Status", "ApiResult", "create_api_result", "create_api_error"]
