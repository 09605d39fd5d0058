"""Status resolver for SWORD v2 Atom statements."""

import logging

import httpx
from lxml import etree

from courier.config import RepositoryConfig
from courier.domain.deposit.port.status_resolver import StatusResolver
from courier.domain.shared.error import StatusDocumentError, StatusUnreachableError

logger = logging.getLogger(__name__)

NSMAP = {
    "atom": "http://www.w3.org/2005/Atom",
    "sword": "http://purl.org/net/sword/terms/",
}

SWORD_STATE_SCHEME = "http://purl.org/net/sword/terms/state"


def parse_statement(content: bytes, status_ref: str) -> str | None:
    """Return the SWORD state term of an Atom statement, or None if it has none."""
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as e:
        raise StatusDocumentError(
            f"Unable to parse the statement at {status_ref}: {e}", status_ref=status_ref
        ) from e

    category = root.find(f"atom:category[@scheme='{SWORD_STATE_SCHEME}']", namespaces=NSMAP)
    if category is None:
        return None
    return category.get("term")


class AtomStatementResolver(StatusResolver):
    """Fetches a statement over HTTP and reads its state category.

    Credentials are taken from the repository options ``username`` and
    ``password`` when present.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def resolve(self, status_ref: str, config: RepositoryConfig) -> str | None:
        auth = None
        if config.options.get("username"):
            auth = httpx.BasicAuth(config.options["username"], config.options.get("password", ""))

        try:
            response = await self._client.get(
                status_ref, auth=auth, headers={"Accept": "application/atom+xml"}
            )
        except httpx.TransportError as e:
            raise StatusUnreachableError(f"Unable to reach {status_ref}: {e}") from e

        if response.status_code >= 500:
            raise StatusUnreachableError(
                f"Statement at {status_ref} returned HTTP {response.status_code}"
            )
        if response.status_code >= 400:
            raise StatusDocumentError(
                f"Statement at {status_ref} returned HTTP {response.status_code}",
                status_ref=status_ref,
                repository_key=config.repository_key,
            )

        term = parse_statement(response.content, status_ref)
        logger.debug(f"Statement {status_ref} reports state {term}")
        return term
