"""
ZKL Access SDK - Infura IPFS Client

This module wraps the Infura IPFS HTTP API for NFT asset storage: adding and
pinning files inside wrapping directories, listing directories, extending an
existing directory with new files, unpinning, and building gateway URLs.
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import base58
import requests
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.util.retry import Retry

INFURA_IPFS_API = "https://ipfs.infura.io:5001"
GATEWAY_DOMAIN = "zkladder.infura-ipfs.io"

FileContent = Union[bytes, str]


class IpfsError(Exception):
    """Base exception for IPFS errors."""
    pass


class IpfsRequestError(IpfsError):
    """Raised when a request to the IPFS API fails."""

    def __init__(self, message: str, method: str, url: str):
        self.method = method
        self.url = url
        super().__init__(f"{message}, Method:[{method}], URL:[{url}]")


@dataclass
class IpfsFile:
    """A file or directory entry returned by the IPFS API."""
    name: str
    hash: str
    size: int
    gateway_url: Optional[str] = None

    @classmethod
    def from_api(cls, record: Dict[str, Any]) -> 'IpfsFile':
        return cls(
            name=record.get("Name", ""),
            hash=record.get("Hash", ""),
            size=int(record.get("Size", 0))
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"Name": self.name, "Hash": self.hash, "Size": self.size}
        if self.gateway_url:
            result["gatewayUrl"] = self.gateway_url
        return result


def detect_ipfs_uri(arg: str) -> str:
    """
    Strip an ``ipfs://`` scheme from a URI, returning the bare CID.

    >>> detect_ipfs_uri("ipfs://QmeSjSinHpPnmXmspMjwiXyN6zS4E9zccariGR3jxcaWtq")
    'QmeSjSinHpPnmXmspMjwiXyN6zS4E9zccariGR3jxcaWtq'
    """
    if arg.startswith("ipfs") and "//" in arg:
        return arg.split("//", 1)[1]
    return arg


def cid_to_base32(cid: str) -> str:
    """
    Convert a CIDv0 (base58 ``Qm...``) to a base32 CIDv1.

    CIDs that are not v0 are returned unchanged.
    """
    if not (len(cid) == 46 and cid.startswith("Qm")):
        return cid
    multihash = base58.b58decode(cid)
    # CIDv1 prefix: version 1, dag-pb codec
    cid_v1 = bytes([0x01, 0x70]) + multihash
    return "b" + base64.b32encode(cid_v1).decode("ascii").lower().rstrip("=")


class InfuraIpfs:
    """Client for the Infura IPFS API."""

    def __init__(self, project_id: str, project_secret: str,
                 base_url: str = INFURA_IPFS_API,
                 timeout: int = 120,
                 max_retries: int = 3):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self.session = requests.Session()
        self.session.auth = HTTPBasicAuth(project_id, project_secret)
        self.session.headers.update({"Accept": "*/*"})

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1.0,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["POST"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None,
                 files: Optional[List[Tuple[str, Any]]] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, params=params, files=files, timeout=self.timeout)
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            self.logger.error(f"IPFS request to {path} failed: {e}")
            raise IpfsRequestError(str(e), "post", url) from e

    @staticmethod
    def _parse_response_string(response: str) -> List[IpfsFile]:
        # /api/v0/add answers with one JSON object per line
        return [IpfsFile.from_api(json.loads(line)) for line in response.split("\n") if line.strip()]

    def _get_dag(self, arg: str) -> Dict[str, Any]:
        return self._request("/api/v0/dag/get", params={"arg": arg}).json()

    def _put_dag(self, dag: Dict[str, Any]) -> Dict[str, Any]:
        if "data" not in dag or "links" not in dag:
            raise IpfsError("Argument is not a valid Dag object")

        document = ("document", ("document", json.dumps(dag), "application/json"))
        response = self._request(
            "/api/v0/dag/put",
            params={"pin": "true", "format": "dag-pb"},
            files=[document]
        )
        return response.json()

    def get_gateway_url(self, arg: str) -> str:
        """
        Wrap a CID or IPFS URI in an HTTP friendly subdomain gateway URL.

        v0 CIDs are converted to base32 v1, as subdomain gateways require.
        """
        cid = cid_to_base32(detect_ipfs_uri(arg))
        return f"https://{cid}.{GATEWAY_DOMAIN}"

    def get_pinned(self, arg: Optional[str] = None) -> Dict[str, Any]:
        """Return all pinned files and directories, optionally filtered by path."""
        params = {"arg": arg} if arg else None
        return self._request("/api/v0/pin/ls", params=params).json()

    def show_directory(self, arg: str) -> List[IpfsFile]:
        """
        List the entries of an IPFS directory.

        Raises:
            IpfsError: If the CID is not a directory
        """
        cid = detect_ipfs_uri(arg)
        directory = self._get_dag(cid)
        links = directory.get("links") if isinstance(directory, dict) else None
        if links is None:
            raise IpfsError("Given CID is not an IPFS directory")

        gateway_url = self.get_gateway_url(cid)
        return [
            IpfsFile(
                name=link.get("Name", ""),
                hash=(link.get("Cid") or {}).get("/", ""),
                size=int(link.get("Size", 0)),
                gateway_url=f"{gateway_url}/{link.get('Name', '')}"
            )
            for link in links
        ]

    def add_files(self, files: List[Tuple[str, FileContent]]) -> List[IpfsFile]:
        """
        Add and pin files inside a new wrapping directory.

        Args:
            files: (file name, content) pairs

        Returns:
            One entry per file plus the wrapping directory (empty name)
        """
        multipart = [(name, (name, content)) for name, content in files]
        response = self._request(
            "/api/v0/add",
            params={"wrap-with-directory": "true", "cid-version": 1},
            files=multipart or None
        )
        entries = self._parse_response_string(response.text)
        self.logger.info(f"Added {len(files)} files to IPFS")
        return entries

    def create_empty_directory(self) -> List[IpfsFile]:
        """Create and pin an empty directory."""
        return self.add_files([])

    def remove_file(self, arg: str) -> Dict[str, Any]:
        """Unpin a file or directory."""
        cid = detect_ipfs_uri(arg)
        response = self._request("/api/v0/pin/rm", params={"arg": cid}).json()
        self.logger.info(f"Unpinned {cid}")
        return response

    def add_files_to_directory(self, files: List[Tuple[str, FileContent]], directory_arg: str) -> Dict[str, str]:
        """
        Add files to an existing directory.

        The new files are uploaded, linked into a copy of the directory node
        and the new node is pinned. The old directory and the temporary
        upload directory are then unpinned on a best-effort basis.

        Returns:
            {"Hash": base32 CID of the new directory}
        """
        directory_cid = detect_ipfs_uri(directory_arg)
        new_files = self.add_files(files)

        directory = self._get_dag(directory_cid)
        if not isinstance(directory, dict) or directory.get("links") is None:
            raise IpfsError("Given directoryHash is not an IPFS directory")

        upload_directory = ""
        for new_file in new_files:
            if new_file.name:
                directory["links"].append({
                    "Name": new_file.name,
                    "Size": new_file.size,
                    "Cid": {"/": new_file.hash},
                })
            else:
                upload_directory = new_file.hash

        response = self._put_dag(directory)

        for stale in (upload_directory, directory_cid):
            if not stale:
                continue
            try:
                self.remove_file(stale)
            except IpfsRequestError as e:
                self.logger.warning(f"Could not unpin {stale}: {e}")

        return {"Hash": cid_to_base32(response["Cid"]["/"])}
