"""OTCS Module to read and write category metadata of Content Server objects.

This includes the categories of nodes, the category forms (attribute
definitions) and the business properties of business workspaces.

The documentation for the used REST APIs can be found here:
    - [https://developer.opentext.com](https://developer.opentext.com/ce/products/extended-ecm)
"""

import json
import logging
import platform
import re
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from http import HTTPStatus
from importlib.metadata import PackageNotFoundError, version

import requests
from opentelemetry import trace
from pydantic import ValidationError

from pyotcs.category import (
    BusinessPropertiesResult,
    CategoryDefinition,
    CategoryWithValues,
    NameIndex,
    NodeCategories,
    WorkspaceMetadataForm,
    add_attributes_to_index,
    decode_node_categories,
    decode_node_category,
    encode_category_values,
    extract_category_definition,
    extract_workspace_metadata_form,
    is_flattened_key,
    resolve_attribute_name,
)
from pyotcs.exceptions import BusinessPropertiesError
from pyotcs.settings import OTCSSettings

tracer = trace.get_tracer(__name__)

APP_NAME = "pyotcs"
try:
    APP_VERSION = version(APP_NAME)
except PackageNotFoundError:
    APP_VERSION = "0.0.0"
MODULE_NAME = APP_NAME + ".otcs"
OTEL_TRACING_ATTRIBUTES = {"class": "otcs"}

PYTHON_VERSION = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
OS_INFO = f"{platform.system()} {platform.release()}"
REQUESTS_VERSION = requests.__version__

USER_AGENT = (
    f"{APP_NAME}/{APP_VERSION} ({MODULE_NAME}/{APP_VERSION}; "
    f"Python/{PYTHON_VERSION}; {OS_INFO}; Requests/{REQUESTS_VERSION})"
)

REQUEST_JSON_HEADERS = {
    "User-Agent": USER_AGENT,
    "accept": "application/json;charset=utf-8",
    "Content-Type": "application/json",
}

REQUEST_FORM_HEADERS = {
    "User-Agent": USER_AGENT,
    "accept": "application/json;charset=utf-8",
    "Content-Type": "application/x-www-form-urlencoded",
}

REQUEST_TIMEOUT = 60.0
REQUEST_RETRY_DELAY = 30.0
REQUEST_MAX_RETRIES = 2

# '{category_id}_{attribute_id}...' - group 1 is the category ID:
CATEGORY_KEY_PATTERN = re.compile(r"^([0-9]+)_[0-9]+")
CATEGORY_ID_PATTERN = re.compile(r"[0-9]+")

# Errors of a single form read while building the name index. The form is skipped.
FORM_READ_ERRORS = (requests.exceptions.RequestException, ValidationError, ValueError, KeyError, TypeError)

default_logger = logging.getLogger(MODULE_NAME)


class OTCS:
    """Used to read and write category metadata in OpenText Content Management."""

    logger: logging.Logger = default_logger

    @classmethod
    def from_settings(cls, settings: OTCSSettings | None = None, logger: logging.Logger = default_logger) -> "OTCS":
        """Create an OTCS object from settings (by default read from the environment).

        Args:
            settings (OTCSSettings | None, optional):
                The connection settings. If None, they are read from
                the OTCS_* environment variables.
            logger (logging.Logger, optional):
                The logging object to use for all log messages. Defaults to default_logger.
                Its level (of the child logger if a logger is passed) is set to settings.loglevel.

        Returns:
            OTCS:
                The new (not yet authenticated) OTCS object.

        """

        if settings is None:
            settings = OTCSSettings()

        otcs = cls(
            protocol=settings.url.scheme,
            hostname=settings.url.host,
            port=settings.url.port,
            base_path=settings.base_path,
            username=settings.username,
            password=settings.password.get_secret_value() if settings.password else None,
            otcs_ticket=settings.ticket,
            thread_number=settings.thread_number,
            timeout=settings.timeout,
            logger=logger,
        )
        otcs.logger.setLevel(settings.loglevel)

        return otcs

    # end method definition

    def __init__(
        self,
        protocol: str,
        hostname: str,
        port: int,
        base_path: str = "/cs/cs",
        username: str | None = None,
        password: str | None = None,
        otcs_ticket: str | None = None,
        thread_number: int = 3,
        timeout: float | None = REQUEST_TIMEOUT,
        logger: logging.Logger = default_logger,
    ) -> None:
        """Initialize the OTCS object.

        Args:
            protocol (str):
                Either http or https.
            hostname (str):
                The hostname of the Content Server to communicate with.
            port (int):
                The port number used to talk to the Content Server.
            base_path (str, optional):
                The base path segment of the Content Server URL.
                This typically is /cs/cs on a Linux deployment or /cs/cs.exe
                on a Windows deployment.
            username (str | None, optional):
                The user name. Optional if otcs_ticket is provided.
            password (str | None, optional):
                The password. Optional if otcs_ticket is provided.
            otcs_ticket (str | None, optional):
                An existing OTCS ticket (e.g. passed in by the caller of a tool).
            thread_number (int, optional):
                The number of threads for parallel form requests.
            timeout (float | None, optional):
                Timeout for REST API calls in seconds. None waits forever.
            logger (logging.Logger, optional):
                The logging object to use for all log messages. Defaults to default_logger.

        """

        if logger != default_logger:
            self.logger = logger.getChild("otcs")

            for logfilter in logger.filters:
                self.logger.addFilter(logfilter)

        otcs_config = {}

        otcs_config["hostname"] = hostname or "otcs-admin-0"
        otcs_config["protocol"] = protocol or "http"
        otcs_config["port"] = port or 8080
        otcs_config["username"] = username or "admin"
        otcs_config["password"] = password or ""

        otcs_base_url = otcs_config["protocol"] + "://" + otcs_config["hostname"]
        if str(otcs_config["port"]) not in ["80", "443"]:
            otcs_base_url += ":{}".format(otcs_config["port"])
        otcs_config["baseUrl"] = otcs_base_url

        otcs_rest_url = otcs_base_url + base_path + "/api"
        otcs_config["restUrl"] = otcs_rest_url

        otcs_config["isReady"] = otcs_rest_url + "/v1/ping"
        otcs_config["authenticationUrl"] = otcs_rest_url + "/v1/auth"
        otcs_config["nodesUrlv2"] = otcs_rest_url + "/v2/nodes"
        otcs_config["nodesFormUrl"] = otcs_rest_url + "/v1/forms/nodes"
        otcs_config["businessWorkspacesUrl"] = otcs_rest_url + "/v2/businessworkspaces"
        otcs_config["businessWorkspacesFormUrl"] = otcs_rest_url + "/v2/forms/businessworkspaces"

        self._config = otcs_config
        self._otcs_ticket = otcs_ticket
        self._timeout = timeout
        self._executor = ThreadPoolExecutor(max_workers=thread_number)

        # Concurrent requests may run into 401 errors at the same time.
        # Only one of them should re-authenticate:
        self._authentication_lock = threading.Lock()

    # end method definition

    def config(self) -> dict:
        """Return the configuration dictionary.

        Returns:
            dict: The configuration dictionary with all settings.

        """
        return self._config

    # end method definition

    def otcs_ticket(self) -> str | None:
        """Return the OTCS ticket (None if not authenticated)."""

        return self._otcs_ticket

    # end method definition

    def set_otcs_ticket(self, ticket: str) -> None:
        """Set the OTCS ticket, e.g. one that was handed over by a calling application.

        Args:
            ticket (str):
                The new OTCS ticket.

        """

        self._otcs_ticket = ticket

    # end method definition

    def credentials(self) -> dict:
        """Get credentials (username + password).

        Returns:
            dict:
                A dictionary with username and password.

        """

        return {
            "username": self.config()["username"],
            "password": self.config()["password"],
        }

    # end method definition

    def request_form_header(self) -> dict:
        """Deliver the request header used for the form-encoded REST API calls.

        Returns:
            dict:
                The request header with the current OTCS ticket.

        """

        request_header = dict(REQUEST_FORM_HEADERS)
        if self._otcs_ticket:
            request_header["OTCSTicket"] = self._otcs_ticket

        return request_header

    # end method definition

    def request_json_header(self) -> dict:
        """Deliver the request header used for the JSON REST API calls.

        Returns:
            dict:
                The request header with the current OTCS ticket.

        """

        request_header = dict(REQUEST_JSON_HEADERS)
        if self._otcs_ticket:
            request_header["OTCSTicket"] = self._otcs_ticket

        return request_header

    # end method definition

    def is_ready(self) -> bool:
        """Check if the Content Server REST API is ready to receive requests.

        Returns:
            bool:
                True if the ping endpoint answers, False otherwise.

        """

        try:
            response = requests.get(
                url=self.config()["isReady"],
                headers=REQUEST_JSON_HEADERS,
                timeout=2,
            )
        except requests.exceptions.RequestException as exception:
            self.logger.debug("Content Server is not ready; error -> %s", str(exception))
            return False

        return response.status_code == HTTPStatus.OK

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="authenticate")
    def authenticate(self, revalidate: bool = False) -> str | None:
        """Authenticate at Content Server with username + password and retrieve an OTCS ticket.

        Args:
            revalidate (bool, optional):
                Enforce a new authentication even if a ticket exists
                (e.g. if the session has timed out with a 401 error).

        Returns:
            str | None:
                The OTCS ticket or None in case of an error.

        """

        if self._otcs_ticket and not revalidate:
            self.logger.debug("Session still valid - return existing ticket.")
            return self._otcs_ticket

        if not self.config()["username"] or not self.config()["password"]:
            self.logger.error("Missing username or password for authentication! Cannot authenticate at OTCS.")
            return None

        request_url = self.config()["authenticationUrl"]

        self.logger.debug(
            "Requesting OTCS ticket with username -> '%s' and password; calling -> %s",
            self.config()["username"],
            request_url,
        )

        try:
            response = requests.post(
                url=request_url,
                data=self.credentials(),
                headers=REQUEST_FORM_HEADERS,
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as exception:
            self.logger.warning(
                "Unable to connect to -> %s; error -> %s",
                request_url,
                str(exception),
            )
            return None

        if not response.ok:
            self.logger.error(
                "Failed to request an OTCS ticket; status -> %s; error -> %s",
                response.status_code,
                response.text,
            )
            return None

        authenticate_dict = self.parse_request_response(response_object=response, show_error=False)
        if not authenticate_dict or "ticket" not in authenticate_dict:
            self.logger.error("Authentication response does not include a ticket!")
            return None

        self._otcs_ticket = authenticate_dict["ticket"]

        return self._otcs_ticket

    # end method definition

    def reauthenticate(self, request_ticket: str | None) -> str | None:
        """Re-authenticate after a session has expired.

        If another thread has already renewed the ticket in the meantime
        the new ticket is used as it is.

        Args:
            request_ticket (str | None):
                The ticket that was used for the failed request.

        Returns:
            str | None:
                The new OTCS ticket or None in case of an error.

        """

        with self._authentication_lock:
            if self._otcs_ticket and self._otcs_ticket != request_ticket:
                self.logger.debug("Ticket has been renewed by another thread already.")
                return self._otcs_ticket

            return self.authenticate(revalidate=True)

    # end method definition

    def do_request(
        self,
        url: str,
        method: str = "GET",
        headers: dict | None = None,
        data: dict | list[tuple[str, str]] | None = None,
        json_data: dict | None = None,
        show_error: bool = True,
        show_warning: bool = False,
        warning_message: str = "",
        failure_message: str = "",
        success_message: str = "",
        max_retries: int = REQUEST_MAX_RETRIES,
        parse_request_response: bool = True,
    ) -> dict | None:
        """Call an OTCS REST API in a safe way.

        Args:
            url (str):
                URL to send the request to.
            method (str, optional):
                HTTP method (GET, POST, etc.). Defaults to "GET".
            headers (dict | None, optional):
                Request headers. Defaults to the JSON request header.
            data (dict | list[tuple[str, str]] | None, optional):
                Form payload. A list of (key, value) pairs keeps repeated
                keys (multi-value attributes) in order. Defaults to None.
            json_data (dict | None, optional):
                Request payload for the JSON parameter. Defaults to None.
            show_error (bool, optional):
                Whether or not an error should be logged in case of a failed REST call.
            show_warning (bool, optional):
                Whether or not a warning should be logged in case of a
                failed REST call (only used if show_error is False).
            warning_message (str, optional):
                Specific warning message. If not given, the failure_message will be used.
            failure_message (str, optional):
                Specific error message. Defaults to "".
            success_message (str, optional):
                Specific success message. Defaults to "".
            max_retries (int, optional):
                Number of retries on timeouts, connection errors and
                expired sessions. Defaults to REQUEST_MAX_RETRIES.
            parse_request_response (bool, optional):
                Whether the response text should be interpreted as JSON and loaded
                into a dictionary. Defaults to True.

        Returns:
            dict | None:
                Response of Content Server REST API or None in case of an error.
                An empty response body of a successful call is returned as {}.

        """

        if headers is None:
            headers = self.request_json_header()

        retries = 0

        while True:
            request_ticket = self._otcs_ticket
            if not request_ticket:
                self.logger.error("Cannot call -> %s - user is not authenticated!", url)
                return None
            headers["OTCSTicket"] = request_ticket

            try:
                response = requests.request(
                    method=method,
                    url=url,
                    data=data,
                    json=json_data,
                    headers=headers,
                    timeout=self._timeout,
                )

                if response.ok:
                    if success_message:
                        self.logger.info(success_message)
                    if not parse_request_response:
                        return response
                    if not response.text:
                        return {}
                    return self.parse_request_response(response_object=response)
                # Session has expired - re-authenticate and try again:
                elif response.status_code == HTTPStatus.UNAUTHORIZED and retries < max_retries:
                    self.logger.info("Reauthentication at -> '%s' required.", url)
                    if not self.reauthenticate(request_ticket=request_ticket):
                        self.logger.error("%s; reauthentication failed.", failure_message)
                        return None
                    retries += 1
                else:
                    if show_error:
                        self.logger.error(
                            "%s; status -> %s/%s; error -> %s",
                            failure_message,
                            response.status_code,
                            HTTPStatus(response.status_code).phrase,
                            response.text,
                        )
                    elif show_warning:
                        self.logger.warning(
                            "%s; status -> %s/%s; warning -> %s",
                            warning_message if warning_message else failure_message,
                            response.status_code,
                            HTTPStatus(response.status_code).phrase,
                            response.text,
                        )
                    else:
                        self.logger.debug(
                            "Status -> %s/%s; debug -> %s",
                            response.status_code,
                            HTTPStatus(response.status_code).phrase,
                            response.text,
                        )
                    return None
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as exception:
                if retries < max_retries:
                    self.logger.warning(
                        "Request to -> %s failed; error -> %s! Retrying in %d seconds... %d/%d",
                        url,
                        str(exception),
                        REQUEST_RETRY_DELAY,
                        retries + 1,
                        max_retries,
                    )
                    retries += 1
                    time.sleep(REQUEST_RETRY_DELAY)
                else:
                    self.logger.error(
                        "%s; connection error -> %s",
                        failure_message,
                        str(exception),
                    )
                    return None
            self.logger.debug(
                "Retrying REST API %s call -> %s... (retry = %s)",
                method,
                url,
                str(retries),
            )
        # end while True

    # end method definition

    def parse_request_response(
        self,
        response_object: requests.Response,
        additional_error_message: str = "",
        show_error: bool = True,
    ) -> dict | None:
        """Convert the text property of a request response object to a Python dict safely.

        Content Server may answer with a status 200 but a body that is
        not valid JSON (e.g. during restarts). This is treated like a
        connection error so the request is retried.

        Args:
            response_object (requests.Response):
                The response object delivered by the request call.
            additional_error_message (str):
                Custom error message to include in logs.
            show_error (bool, optional):
                If True, raise an exception. If False, log a warning.

        Returns:
            dict | None:
                Parsed response as a dictionary, or None in case of an error.

        Raises:
            requests.exceptions.ConnectionError:
                If the response cannot be decoded as JSON and show_error is True.

        """

        if not response_object.text:
            self.logger.warning("Response text is empty. Cannot decode response.")
            return None

        try:
            dict_object = json.loads(response_object.text)
        except json.JSONDecodeError as exception:
            message = "Cannot decode response as JSon{}; error -> {}".format(
                ". " + additional_error_message if additional_error_message else "",
                exception,
            )
            if show_error:
                raise requests.exceptions.ConnectionError(message) from exception
            self.logger.warning(message)
            return None

        return dict_object

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="get_categories")
    def get_categories(self, node_id: int, include_metadata: bool = False) -> NodeCategories:
        """Get the categories (with their attribute values) assigned to a node.

        Args:
            node_id (int):
                The ID of the node to get the categories for.
            include_metadata (bool, optional):
                If True, the attribute definitions are expanded in the response.

        Returns:
            NodeCategories:
                The categories of the node. The list is empty if no categories
                are assigned or if the call to the REST API fails.

        Example:
            NodeCategories(
                node_id=4711,
                categories=[
                    CategoryWithValues(
                        id=42,
                        name='Invoice',
                        attributes=[AttributeValue(key='amount', name='Amount', type='number', value=100)]
                    )
                ]
            )

        """

        request_url = self.config()["nodesUrlv2"] + "/" + str(node_id) + "/categories"
        if include_metadata:
            request_url += "?metadata"

        self.logger.debug(
            "Get categories of node with ID -> %d; calling -> %s",
            node_id,
            request_url,
        )

        response = self.do_request(
            url=request_url,
            method="GET",
            headers=self.request_form_header(),
            failure_message="Failed to get categories for node ID -> {}".format(node_id),
        )

        return NodeCategories(node_id=node_id, categories=decode_node_categories(response))

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="get_category")
    def get_category(
        self,
        node_id: int,
        category_id: int,
        include_metadata: bool = False,
    ) -> CategoryWithValues | None:
        """Get a specific category assigned to a node.

        Args:
            node_id (int):
                The ID of the node to get the category for.
            category_id (int):
                The node ID of the category definition (in category volume).
            include_metadata (bool, optional):
                If True, the attribute definitions are expanded in the response.

        Returns:
            CategoryWithValues | None:
                The category with its values or None if the category is not
                assigned or the call to the REST API fails.

        """

        request_url = self.config()["nodesUrlv2"] + "/" + str(node_id) + "/categories/" + str(category_id) + "/"
        if include_metadata:
            request_url += "?metadata"

        self.logger.debug(
            "Get category with ID -> %d on node with ID -> %d; calling -> %s",
            category_id,
            node_id,
            request_url,
        )

        response = self.do_request(
            url=request_url,
            method="GET",
            headers=self.request_form_header(),
            failure_message="Failed to get category with ID -> {} for node ID -> {}".format(
                category_id,
                node_id,
            ),
        )

        return decode_node_category(response=response, category_id=category_id)

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="add_category")
    def add_category(self, node_id: int, category_id: int, values: dict | None = None) -> dict | None:
        """Assign a category to a node and optionally set attribute values.

        Args:
            node_id (int):
                The node ID to apply the category to.
            category_id (int):
                The ID of the category definition object.
            values (dict | None, optional):
                Attribute values to set during the assignment. For mandatory
                attributes this is required to assign the category.
                See encode_category_values() for the supported formats.

        Returns:
            dict | None:
                REST API response or None if the call fails.

        """

        request_url = self.config()["nodesUrlv2"] + "/" + str(node_id) + "/categories"

        category_post_data = [("category_id", str(category_id))]
        category_post_data += encode_category_values(values=values, category_id=category_id)

        self.logger.debug(
            "Assign category with ID -> %d to item with ID -> %d; calling -> %s",
            category_id,
            node_id,
            request_url,
        )

        return self.do_request(
            url=request_url,
            method="POST",
            headers=self.request_form_header(),
            data=category_post_data,
            failure_message="Failed to assign category with ID -> {} to node with ID -> {}".format(
                category_id,
                node_id,
            ),
        )

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="update_category")
    def update_category(self, node_id: int, category_id: int, values: dict) -> dict | None:
        """Set attribute values of a category that is assigned to a node.

        Categories can have sets (groupings), multi-line sets (matrix), and
        multi-value attributes (list of values). All variants are supported,
        see encode_category_values() for the formats.

        Args:
            node_id (int):
                The ID of the node.
            category_id (int):
                The node ID of the category definition item.
            values (dict):
                Attribute values that should be set. Values that are None
                are skipped (the attribute remains unchanged).

        Returns:
            dict | None:
                REST API response or None if the call fails.

        """

        category_put_data = encode_category_values(values=values, category_id=category_id)

        if not category_put_data:
            self.logger.error(
                "No category values provided! Cannot set values for category ID -> %d on node with ID -> %d",
                category_id,
                node_id,
            )
            return None

        request_url = self.config()["nodesUrlv2"] + "/" + str(node_id) + "/categories/" + str(category_id) + "/"

        self.logger.debug(
            "Set values -> %s for category ID -> %d on node -> %d; calling -> %s",
            str(category_put_data),
            category_id,
            node_id,
            request_url,
        )

        return self.do_request(
            url=request_url,
            method="PUT",
            headers=self.request_form_header(),
            data=category_put_data,
            failure_message="Failed to set values for category with ID -> {} on node ID -> {}".format(
                category_id,
                node_id,
            ),
        )

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="remove_category")
    def remove_category(self, node_id: int, category_id: int) -> dict | None:
        """Remove a category from a node.

        Args:
            node_id (int):
                The ID of the node.
            category_id (int):
                The node ID of the category definition item.

        Returns:
            dict | None:
                REST API response or None if the call fails.

        """

        request_url = self.config()["nodesUrlv2"] + "/" + str(node_id) + "/categories/" + str(category_id) + "/"

        self.logger.debug(
            "Remove category with ID -> %d from node with ID -> %d; calling -> %s",
            category_id,
            node_id,
            request_url,
        )

        return self.do_request(
            url=request_url,
            method="DELETE",
            headers=self.request_form_header(),
            failure_message="Failed to remove category with ID -> {} from node with ID -> {}".format(
                category_id,
                node_id,
            ),
        )

    # end method definition

    def get_node_category_form(self, node_id: int, category_id: int, operation: str = "update") -> dict | None:
        """Get the raw category create or update form of a node.

        Args:
            node_id (int):
                The ID of the node.
            category_id (int):
                The ID of the category.
            operation (str, optional):
                Either "create" or "update". Default is "update".

        Returns:
            dict | None:
                The form response (see pyotcs.category.schema) or None if the request fails.

        """

        request_url = self.config()["nodesFormUrl"] + "/categories/{}?id={}&category_id={}".format(
            operation,
            node_id,
            category_id,
        )

        self.logger.debug(
            "Get category %s form for node ID -> %s and category ID -> %s; calling -> %s",
            operation,
            str(node_id),
            str(category_id),
            request_url,
        )

        return self.do_request(
            url=request_url,
            method="GET",
            headers=self.request_form_header(),
            failure_message="Cannot get category {} form for node ID -> {} and category ID -> {}".format(
                operation,
                node_id,
                category_id,
            ),
        )

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="get_category_create_form")
    def get_category_create_form(self, node_id: int, category_id: int) -> CategoryDefinition | None:
        """Get the definition of a category as used for assigning it to a node.

        Args:
            node_id (int):
                The ID of the node.
            category_id (int):
                The ID of the category.

        Returns:
            CategoryDefinition | None:
                The category definition or None if the form cannot be retrieved.

        """

        response = self.get_node_category_form(node_id=node_id, category_id=category_id, operation="create")
        if response is None:
            return None

        return extract_category_definition(response=response, category_id=category_id)

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="get_category_update_form")
    def get_category_update_form(self, node_id: int, category_id: int) -> CategoryDefinition | None:
        """Get the definition of a category assigned to a node (including set row counts).

        Args:
            node_id (int):
                The ID of the node.
            category_id (int):
                The ID of the category.

        Returns:
            CategoryDefinition | None:
                The category definition or None if the form cannot be retrieved.

        """

        response = self.get_node_category_form(node_id=node_id, category_id=category_id, operation="update")
        if response is None:
            return None

        return extract_category_definition(response=response, category_id=category_id)

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="get_workspace_metadata_form")
    def get_workspace_metadata_form(self, workspace_id: int) -> WorkspaceMetadataForm | None:
        """Get the definitions of all categories of a business workspace at once.

        Args:
            workspace_id (int):
                The ID of the business workspace.

        Returns:
            WorkspaceMetadataForm | None:
                The category definitions or None if the form cannot be retrieved
                (e.g. the node is not a business workspace).

        """

        request_url = self.config()["businessWorkspacesFormUrl"] + "/{}/metadata/update".format(workspace_id)

        self.logger.debug(
            "Get metadata form of workspace with ID -> %d; calling -> %s",
            workspace_id,
            request_url,
        )

        response = self.do_request(
            url=request_url,
            method="GET",
            headers=self.request_form_header(),
            show_error=False,
            show_warning=True,
            failure_message="Cannot get metadata form of workspace with ID -> {}".format(workspace_id),
        )
        if response is None:
            return None

        return extract_workspace_metadata_form(response=response, workspace_id=workspace_id)

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="build_category_name_map")
    def build_category_name_map(self, node_id: int) -> NameIndex:
        """Build a map of normalized attribute names to flattened attribute keys.

        This is used to resolve friendly-name keys (e.g. "Equipment_Number")
        to category keys (e.g. "10596_2_1_6"). The map is built for each call
        as category definitions may change at any time.

        Two strategies are tried (first non-empty result wins):
        1. The workspace metadata form (all categories at once).
        2. The category create form of each category assigned to the node.
           Categories whose form cannot be retrieved are skipped.

        Args:
            node_id (int):
                The ID of the node (typically a business workspace).

        Returns:
            NameIndex:
                The map of normalized names to keys. Empty if no category
                definitions could be retrieved.

        """

        name_index: NameIndex = {}

        try:
            metadata_form = self.get_workspace_metadata_form(workspace_id=node_id)
        except FORM_READ_ERRORS as exception:
            self.logger.warning(
                "Cannot read metadata form of node with ID -> %d; error -> %s",
                node_id,
                str(exception),
            )
            metadata_form = None

        if metadata_form:
            for category in metadata_form.categories:
                add_attributes_to_index(index=name_index, attributes=category.attributes)
        if name_index:
            return name_index

        self.logger.debug(
            "Metadata form of node with ID -> %d has no attributes. Reading the forms of each category...",
            node_id,
        )

        try:
            node_categories = self.get_categories(node_id=node_id)
        except FORM_READ_ERRORS as exception:
            self.logger.warning(
                "Cannot read categories of node with ID -> %d; error -> %s",
                node_id,
                str(exception),
            )
            return name_index

        futures = {
            category.id: self._executor.submit(
                self.get_category_create_form,
                node_id=node_id,
                category_id=category.id,
            )
            for category in node_categories.categories
        }

        # Evaluate in the order of the categories to get a stable result:
        for category_id, future in futures.items():
            try:
                category_form = future.result()
            except FORM_READ_ERRORS as exception:
                self.logger.warning(
                    "Skipping category with ID -> %d; error -> %s",
                    category_id,
                    str(exception),
                )
                continue
            if not category_form:
                self.logger.warning(
                    "Skipping category with ID -> %d - cannot read its form.",
                    category_id,
                )
                continue
            add_attributes_to_index(index=name_index, attributes=category_form.attributes)

        return name_index

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="apply_workspace_business_properties")
    def apply_workspace_business_properties(
        self,
        workspace_id: int,
        properties: dict,
    ) -> BusinessPropertiesResult:
        """Write business properties (category values) of a workspace.

        The properties can be given in these formats (mixing is possible):
        1. Flattened keys: {"11150_28": "value", "11150_2_1_6": "value"}
        2. Category ID with attribute values: {"11150": {"28": "value", "2": [{"6": "value"}]}}
        3. Attribute names: {"Equipment Number": "value"}

        Attribute names are resolved with build_category_name_map(). The map
        is only built if at least one key needs it.

        Args:
            workspace_id (int):
                The ID of the business workspace (or any other node).
            properties (dict):
                The properties to write.

        Returns:
            BusinessPropertiesResult:
                The IDs of the updated and failed categories and the keys
                that could not be resolved.

        Raises:
            BusinessPropertiesError:
                If not a single category could be updated but at least one failed.

        """

        result = BusinessPropertiesResult()
        categorized_values: dict[int, dict] = {}
        unresolved_properties = []

        for key, value in properties.items():
            key = str(key)

            match = CATEGORY_KEY_PATTERN.match(key)
            if match:
                categorized_values.setdefault(int(match.group(1)), {})[key] = value
                continue

            # A category ID with a dictionary of attribute values. Flattened
            # keys (e.g. '2_1_6') get the category prefix here, plain keys
            # are prefixed by the value encoding:
            if CATEGORY_ID_PATTERN.fullmatch(key) and isinstance(value, dict):
                category_values = categorized_values.setdefault(int(key), {})
                for attribute_key, attribute_value in value.items():
                    attribute_key = str(attribute_key)
                    if is_flattened_key(attribute_key) and not attribute_key.startswith(key + "_"):
                        attribute_key = "{}_{}".format(key, attribute_key)
                    category_values[attribute_key] = attribute_value
                continue

            unresolved_properties.append((key, value))

        if unresolved_properties:
            name_index = self.build_category_name_map(node_id=workspace_id)

            for key, value in unresolved_properties:
                resolved_key = resolve_attribute_name(index=name_index, name=key)
                match = CATEGORY_KEY_PATTERN.match(resolved_key) if resolved_key else None
                if not match:
                    self.logger.warning(
                        "Cannot resolve key -> '%s' to an attribute of workspace with ID -> %d. Skipping...",
                        key,
                        workspace_id,
                    )
                    result.skipped.append(key)
                    continue
                self.logger.debug("Resolved key -> '%s' to attribute -> %s", key, resolved_key)
                categorized_values.setdefault(int(match.group(1)), {})[resolved_key] = value

        for category_id, values in categorized_values.items():
            if not encode_category_values(values=values, category_id=category_id):
                self.logger.debug(
                    "No values to write for category with ID -> %d. Leaving it unchanged.",
                    category_id,
                )
                continue
            try:
                response = self.update_category(node_id=workspace_id, category_id=category_id, values=values)
            except requests.exceptions.RequestException as exception:
                self.logger.warning(
                    "Failed to update category with ID -> %d on workspace with ID -> %d; error -> %s",
                    category_id,
                    workspace_id,
                    str(exception),
                )
                response = None
            if response is None:
                result.failed.append(category_id)
            else:
                result.updated.append(category_id)

        if not result.updated and result.failed:
            message = "Failed to apply business properties: all {} category update(s) failed (categories: {})".format(
                len(result.failed),
                ", ".join(str(category_id) for category_id in result.failed),
            )
            raise BusinessPropertiesError(message=message, failed=result.failed)

        return result

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="update_workspace_metadata")
    def update_workspace_metadata(self, workspace_id: int, values: dict) -> BusinessPropertiesResult:
        """Update the business properties of a workspace.

        Args:
            workspace_id (int):
                The ID of the business workspace.
            values (dict):
                The values to write (see apply_workspace_business_properties() for the formats).

        Returns:
            BusinessPropertiesResult:
                The outcome per category.

        """

        return self.apply_workspace_business_properties(workspace_id=workspace_id, properties=values)

    # end method definition

    @tracer.start_as_current_span(attributes=OTEL_TRACING_ATTRIBUTES, name="create_workspace")
    def create_workspace(
        self,
        template_id: int,
        name: str,
        parent_id: int | None = None,
        description: str | None = None,
        business_properties: dict | None = None,
    ) -> dict | None:
        """Create a business workspace and set its business properties.

        The business properties are written after the workspace has been
        created (with apply_workspace_business_properties()).

        Args:
            template_id (int):
                The ID of the workspace template.
            name (str):
                The name of the new workspace.
            parent_id (int | None, optional):
                The ID of the parent folder. If None, the location
                configured for the workspace type is used.
            description (str | None, optional):
                The description of the workspace.
            business_properties (dict | None, optional):
                Category values of the new workspace.

        Returns:
            dict | None:
                The REST response of the workspace creation or None if the
                creation fails. If business properties were given, their
                outcome is added with the key "business_properties".

        """

        request_url = self.config()["businessWorkspacesUrl"]

        workspace_post_data = [("template_id", str(template_id)), ("name", name)]
        if parent_id:
            workspace_post_data.append(("parent_id", str(parent_id)))
        if description:
            workspace_post_data.append(("description", description))

        self.logger.debug(
            "Create workspace -> '%s' from template with ID -> %d; calling -> %s",
            name,
            template_id,
            request_url,
        )

        response = self.do_request(
            url=request_url,
            method="POST",
            headers=self.request_form_header(),
            data=workspace_post_data,
            failure_message="Failed to create workspace -> '{}' from template with ID -> {}".format(
                name,
                template_id,
            ),
        )
        if response is None:
            return None

        results = response.get("results") or {}
        workspace_id = (
            (results.get("data") or {}).get("properties", {}).get("id") or results.get("id") or response.get("id")
        )
        if not workspace_id:
            self.logger.error("Workspace -> '%s' created but the response has no workspace ID!", name)
            return None

        if business_properties:
            property_result = self.apply_workspace_business_properties(
                workspace_id=int(workspace_id),
                properties=business_properties,
            )
            response["business_properties"] = property_result.model_dump()

        return response

    # end method definition
