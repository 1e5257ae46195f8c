"""
Helper utilities for Redfish firmware operations.
Includes task reference extraction from update responses.
"""

from typing import Any, Dict, Optional


def get_task_uri_from_response(response_data: Any, headers: Optional[Dict[str, str]] = None) -> Optional[str]:
    """
    Extract task URI from response headers or body.

    Pattern: Task URI returned in Location header, or as a Task/TaskMonitor
    link in the body. Absence is normal; many devices return nothing.

    Args:
        response_data: Parsed response body
        headers: Response headers

    Returns:
        str: Task URI if found, None otherwise
    """
    # Location header (highest priority)
    if headers:
        location = headers.get('Location')
        if location:
            return location

    if not isinstance(response_data, dict):
        return None

    # Task resource returned directly
    odata_type = response_data.get('@odata.type', '')
    if '@odata.id' in response_data and 'Task' in odata_type:
        return response_data['@odata.id']

    # Check for task in nested structure
    task = response_data.get('Task')
    if isinstance(task, dict) and task.get('@odata.id'):
        return task['@odata.id']

    # Check other common fields devices use
    for field in ('TaskMonitor', 'TaskUri', 'Location', 'JobUri'):
        value = response_data.get(field)
        if value and isinstance(value, str):
            return value

    return None
