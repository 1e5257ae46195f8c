"""
Multipart firmware push.

Builds and sends the authenticated multipart/form-data request carrying the
firmware image (and optional signature) to the device's HttpPushUri.
"""

import json
import os
from contextlib import ExitStack
from typing import BinaryIO, Callable, Optional, Tuple

import requests

from ..utils import _safe_json_parse
from .adapter import RedfishAdapter
from .endpoints import PART_FILE, PART_PARAMETERS, PART_SESSION_KEY, PART_SIGNATURE, PUSH_PARAMETERS
from .errors import AuthError, LocalIOError, UploadError, map_redfish_error
from .helpers import get_task_uri_from_response
from .models import UpdateRequest, UploadResult


class UploadSession:
    """
    Sends one firmware image to a device push endpoint.

    Local files are opened inside an ExitStack so each handle is closed
    exactly once however the upload ends. Nothing is retried here.
    """

    def __init__(
        self,
        adapter: RedfishAdapter,
        host: str,
        timeout: Optional[Tuple[int, int]] = None,
        opener: Optional[Callable[[str, str], BinaryIO]] = None
    ):
        """
        Args:
            adapter: RedfishAdapter used for the POST
            host: Device host or IP address
            timeout: (connect_timeout, read_timeout) for the push
            opener: Callable used to open local files, defaults to open()
        """
        self.adapter = adapter
        self.host = host
        self.timeout = timeout
        self.opener = opener or open

    def _open_local(self, stack: ExitStack, path: str, role: str) -> BinaryIO:
        try:
            handle = self.opener(path, 'rb')
        except OSError as e:
            raise LocalIOError(path, e.strerror or str(e), role=role) from e
        return stack.enter_context(handle)

    def upload(self, push_endpoint: str, session_token: str, request: UpdateRequest) -> UploadResult:
        """
        Push the firmware image named by `request` to `push_endpoint`.

        Args:
            push_endpoint: HttpPushUri advertised by the device
            session_token: Session token (sent as sessionKey part and X-Auth-Token header)
            request: UpdateRequest with local image and optional signature paths

        Returns:
            UploadResult: status, parsed response and task reference ("" when none)

        Raises:
            AuthError: If no session token is supplied
            LocalIOError: If the image or signature cannot be opened (no network call made)
            UploadError: On transport failure or non-success response
        """
        if not session_token:
            raise AuthError("No session token available for firmware upload")
        if not push_endpoint:
            raise UploadError(
                "Device does not advertise an HttpPushUri for firmware upload",
                uri="",
                error_code="NO_PUSH_URI"
            )

        log_body = {
            'firmware_file': os.path.basename(request.local_image_path),
            'parameters': PUSH_PARAMETERS,
        }

        with ExitStack() as stack:
            image = self._open_local(stack, request.local_image_path, "firmware image")

            files = {
                PART_SESSION_KEY: (None, session_token),
                PART_PARAMETERS: (None, json.dumps(PUSH_PARAMETERS), 'application/json'),
                PART_FILE: (os.path.basename(request.local_image_path), image, 'application/octet-stream'),
            }

            if request.has_signature:
                signature = self._open_local(stack, request.local_signature_path, "signature file")
                files[PART_SIGNATURE] = (
                    os.path.basename(request.local_signature_path),
                    signature,
                    'application/octet-stream'
                )
                log_body['signature_file'] = os.path.basename(request.local_signature_path)

            if request.apply_to_recovery_set:
                # The push protocol carries no recovery-set field
                self.adapter.logger.warning(
                    f"update_recovery_set requested for '{request.target_name}'; the push endpoint "
                    f"has no such option, sending a standard update"
                )

            self.adapter.logger.info(
                f"Uploading {log_body['firmware_file']} for '{request.target_name}' "
                f"(version {request.target_version}) to {push_endpoint}"
            )

            try:
                response = self.adapter.post_multipart(
                    host=self.host,
                    endpoint=push_endpoint,
                    files=files,
                    auth_token=session_token,
                    timeout=self.timeout,
                    log_body=log_body
                )
            except requests.exceptions.RequestException as e:
                raise UploadError(
                    f"Error posting firmware to {push_endpoint}: {e}",
                    uri=push_endpoint,
                    error_code="TRANSPORT_ERROR"
                ) from e

        response_data = _safe_json_parse(response)

        if not 200 <= response.status_code < 300:
            error_info = map_redfish_error(response_data if isinstance(response_data, dict) else {})
            raise UploadError(
                f"Multipart upload to {push_endpoint} failed with HTTP {response.status_code}: "
                f"{error_info['message']}",
                uri=push_endpoint,
                error_code=error_info['code'],
                status_code=response.status_code,
                response_body=response.text
            )

        task_reference = get_task_uri_from_response(response_data, response.headers) or ""
        if task_reference:
            self.adapter.logger.info(f"Firmware upload accepted, task: {task_reference}")
        else:
            self.adapter.logger.info(f"Firmware upload accepted (HTTP {response.status_code}), no task reference returned")

        return UploadResult(
            status_code=response.status_code,
            raw_response=response_data,
            task_reference=task_reference
        )
