"""
Redfish Adapter

Wraps Redfish API calls with per-host session handling, command logging, and
error mapping.

All calls to the device go through this adapter to ensure:
- Per-host request serialization via SessionManager
- Session token headers are attached consistently
- Logging of every call to the command log
- Consistent error handling
"""

import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple, Union

import requests

from ..utils import _safe_json_parse, log_command_to_logger, utc_now_iso
from .errors import AuthError, RedfishFirmwareError, map_redfish_error


class RedfishAdapter:
    """
    Adapter that integrates Redfish API calls with our infrastructure.

    Provides a unified JSON request method plus a multipart POST used for
    firmware pushes. Both report to the injected command log function.
    """

    def __init__(
        self,
        session_manager,
        logger: logging.Logger,
        log_command_fn: Optional[Callable] = None,
        scheme: str = "https"
    ):
        """
        Initialize the adapter.

        Args:
            session_manager: SessionManager providing per-host requests sessions
            logger: Logger instance for operation logging
            log_command_fn: Function receiving one audit dict per device call
            scheme: URL scheme used for relative endpoints
        """
        self.session_manager = session_manager
        self.logger = logger
        self.log_command = log_command_fn or log_command_to_logger
        self.scheme = scheme

    def build_url(self, host: str, endpoint: str) -> str:
        """Resolve a device-relative endpoint (or an absolute device-supplied URI) to a full URL."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.scheme}://{host}{endpoint}"

    def make_request(
        self,
        method: str,
        host: str,
        endpoint: str,
        auth_token: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        payload: Optional[Dict] = None,
        operation_name: Optional[str] = None,
        timeout: Optional[Tuple[int, int]] = None,
        return_response: bool = False
    ) -> Union[Dict[str, Any], requests.Response]:
        """
        Unified request method for JSON Redfish calls.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            host: Device host or IP address
            endpoint: Redfish path or absolute device-supplied URI
            auth_token: X-Auth-Token session token (preferred)
            username: Basic auth username when no token is used
            password: Basic auth password
            payload: Optional JSON payload for POST/PATCH
            operation_name: Human-readable operation name for logging
            timeout: Tuple of (connect_timeout, read_timeout)
            return_response: Return the raw requests.Response (headers needed)

        Returns:
            dict: Response JSON data, or the response itself when return_response is set

        Raises:
            AuthError: On 401 responses
            RedfishFirmwareError: On transport and HTTP errors, with mapped error code
        """
        url = self.build_url(host, endpoint)
        operation_name = operation_name or f"{method} {endpoint}"

        headers = {}
        if payload is not None:
            headers['Content-Type'] = 'application/json'
        if auth_token:
            headers['X-Auth-Token'] = auth_token

        request_kwargs = {'headers': headers, 'timeout': timeout}
        if username and not auth_token:
            request_kwargs['auth'] = (username, password or "")
        if payload is not None:
            request_kwargs['json'] = payload

        start_time = time.time()
        response = None

        try:
            response = self.session_manager.make_request(method.upper(), url, host, **request_kwargs)
            response_time_ms = int((time.time() - start_time) * 1000)
            response_data = _safe_json_parse(response)

            response.raise_for_status()

            self._log_operation(
                host=host,
                endpoint=endpoint,
                method=method,
                operation_name=operation_name,
                payload=self._redact_payload(payload),
                response_data=response_data,
                response_time_ms=response_time_ms,
                status_code=response.status_code,
                success=True
            )

            return response if return_response else response_data

        except requests.exceptions.RequestException as e:
            response_time_ms = int((time.time() - start_time) * 1000)
            status_code = response.status_code if response is not None else None
            error_data = _safe_json_parse(response) if response is not None else None

            self._log_operation(
                host=host,
                endpoint=endpoint,
                method=method,
                operation_name=operation_name,
                payload=self._redact_payload(payload),
                response_data=error_data,
                response_time_ms=response_time_ms,
                status_code=status_code,
                success=False,
                error_message=str(e)
            )

            if status_code == 401:
                raise AuthError(
                    message=f"{operation_name} rejected the session credentials",
                    status_code=status_code
                ) from e

            if error_data:
                error_info = map_redfish_error(error_data)
                raise RedfishFirmwareError(
                    message=f"{operation_name} failed: {error_info['message']}",
                    error_code=error_info['code'],
                    status_code=status_code
                ) from e

            raise RedfishFirmwareError(
                message=f"{operation_name} failed: {e}",
                error_code=None,
                status_code=status_code
            ) from e

    def post_multipart(
        self,
        host: str,
        endpoint: str,
        files: Dict[str, Tuple],
        auth_token: str,
        operation_name: str = "Multipart Firmware Upload",
        timeout: Optional[Tuple[int, int]] = None,
        log_body: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        POST a multipart/form-data body to the device.

        requests generates the multipart boundary and sets the matching
        Content-Type header, so only auth and Accept headers are set here.
        Any HTTP status is returned to the caller; transport errors are
        logged and re-raised.

        Args:
            host: Device host or IP address
            endpoint: Push URI (relative or absolute, as supplied by the device)
            files: requests-style multipart parts {name: (filename, content, content_type)}
            auth_token: X-Auth-Token session token
            operation_name: Human-readable operation name for logging
            timeout: Tuple of (connect_timeout, read_timeout)
            log_body: Description of the request for the command log (never file content)

        Returns:
            requests.Response
        """
        url = self.build_url(host, endpoint)
        headers = {
            'X-Auth-Token': auth_token,
            'Accept': 'application/json',
        }

        start_time = time.time()
        try:
            response = self.session_manager.make_request(
                'POST', url, host, files=files, headers=headers, timeout=timeout
            )
        except requests.exceptions.RequestException as e:
            self._log_operation(
                host=host,
                endpoint=endpoint,
                method='POST',
                operation_name=operation_name,
                payload=log_body,
                response_time_ms=int((time.time() - start_time) * 1000),
                success=False,
                error_message=str(e)
            )
            raise

        self._log_operation(
            host=host,
            endpoint=endpoint,
            method='POST',
            operation_name=operation_name,
            payload=log_body,
            response_data=_safe_json_parse(response),
            response_time_ms=int((time.time() - start_time) * 1000),
            status_code=response.status_code,
            success=200 <= response.status_code < 300
        )
        return response

    @staticmethod
    def _redact_payload(payload: Optional[Dict]) -> Optional[Dict]:
        if not payload:
            return payload
        return {k: ('***' if k.lower() == 'password' else v) for k, v in payload.items()}

    def _log_operation(
        self,
        host: str,
        endpoint: str,
        method: str,
        operation_name: str,
        success: bool,
        response_time_ms: int,
        status_code: Optional[int] = None,
        payload: Optional[Dict] = None,
        response_data: Optional[Any] = None,
        error_message: Optional[str] = None
    ):
        """
        Send one device call to the command log.

        Args:
            host: Device host
            endpoint: Redfish API endpoint
            method: HTTP method
            operation_name: Human-readable operation name
            success: Whether operation succeeded
            response_time_ms: Response time in milliseconds
            status_code: HTTP status code
            payload: Request payload (already redacted)
            response_data: Response data
            error_message: Error message if operation failed
        """
        try:
            log_entry = {
                "timestamp": utc_now_iso(),
                "ip_address": host,
                "command_type": operation_name,
                "method": method.upper(),
                "endpoint": endpoint,
                "full_url": self.build_url(host, endpoint),
                "success": success,
                "status_code": status_code,
                "response_time_ms": response_time_ms,
                "source": "redfish_firmware",
                "operation_type": "redfish_api",
            }

            if payload:
                log_entry["request_body"] = payload

            if response_data:
                log_entry["response_body"] = response_data

            if error_message:
                log_entry["error_message"] = error_message

            self.log_command(log_entry)

        except Exception as e:
            # Don't let logging errors break the main operation
            self.logger.error(f"Failed to log Redfish operation: {e}")
