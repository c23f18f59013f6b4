from fastpay_client.client import DEFAULT_BASE_URL, FastPayApiClient
from fastpay_client.exceptions import ApiError, ApiTransportError
