"""
ZKL Access SDK - Backend API Client

Generalized request wrapper for the ZKL REST backend plus the two lookups
the SDK uses: contract ABIs by id and NFT mint vouchers.
"""

import logging
import os
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

DEFAULT_API_URL = "http://zkladder.us-east-1.elasticbeanstalk.com/api"


class ApiRequestError(Exception):
    """Raised when a backend API request fails."""

    def __init__(self, message: str, method: str, url: str, status_code: Optional[int] = None):
        self.method = method
        self.url = url
        self.status_code = status_code
        super().__init__(f"{message}, Method:[{method}], URL:[{url}]")


class ZklApiClient:
    """Thin client for the ZKL backend API."""

    def __init__(self, base_url: Optional[str] = None, timeout: int = 30, max_retries: int = 3):
        """
        Args:
            base_url: API root (defaults to the ZKL_API environment variable)
            timeout: Request timeout in seconds
            max_retries: Retries for idempotent requests on 429/5xx
        """
        self.base_url = (base_url or os.getenv("ZKL_API") or DEFAULT_API_URL).rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self.session = requests.Session()
        self.session.headers.update({"Accept": "*/*"})
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                data: Optional[Dict[str, Any]] = None,
                headers: Optional[Dict[str, str]] = None) -> Any:
        """
        Send a request to the backend and return the decoded JSON body.

        Raises:
            ApiRequestError: On connection errors and non-2xx responses
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method.upper(),
                url,
                params=params,
                json=data,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            self.logger.error(f"API {method} {path} returned {e.response.status_code}")
            raise ApiRequestError(str(e), method, url, e.response.status_code) from e
        except requests.exceptions.RequestException as e:
            self.logger.error(f"API {method} {path} failed: {e}")
            raise ApiRequestError(str(e), method, url) from e

        return response.json()

    def get_contract_abi(self, contract_id: str) -> Any:
        """Return the ABI for a contract template id."""
        return self.request("get", f"/v1/contracts/{contract_id}/abi")

    def get_nft_mint_voucher(self, contract_address: str, user_address: str,
                             chain_id: int, role_id: Optional[str] = None) -> Dict[str, Any]:
        """Fetch a signed mint voucher for a user."""
        params = {
            "contractAddress": contract_address,
            "userAddress": user_address,
            "chainId": chain_id,
        }
        if role_id:
            params["roleId"] = role_id
        return self.request("get", "/v1/vouchers", params=params)
