"""CardDAV client for Nextcloud address books and contacts."""

from __future__ import annotations

import logging
import uuid
from typing import Optional
from urllib.parse import quote, urlsplit

from nextcloud_client.base import BaseNextcloudClient
from nextcloud_client.dav import (
    ADDRESSBOOK_QUERY,
    CARDDAV,
    DAV,
    PROPFIND_COLLECTIONS,
    mkcol_addressbook,
    parse_multistatus,
)
from nextcloud_client.errors import NotFoundError
from nextcloud_client.models import AddressBook, Contact
from nextcloud_client.vformat import build_vcard, parse_vcard

logger = logging.getLogger(__name__)

XML_HEADERS = {"Content-Type": "application/xml; charset=utf-8", "Accept": "*/*"}
VCARD_HEADERS = {"Content-Type": "text/vcard; charset=utf-8", "Accept": "text/vcard"}


class ContactsClient(BaseNextcloudClient):
    """Address books and contacts of the authenticated user."""

    def _home_url(self) -> str:
        return self.dav_url(f"/addressbooks/users/{quote(self.credentials.username)}/")

    def _addressbook_url(self, addressbook: str) -> str:
        return f"{self._home_url()}{quote(addressbook)}/"

    async def list_addressbooks(self) -> list[AddressBook]:
        """Address book collections in the user's home."""
        response = await self._request(
            "PROPFIND",
            self._home_url(),
            headers={**XML_HEADERS, "Depth": "1"},
            content=PROPFIND_COLLECTIONS,
        )
        return [
            AddressBook(
                name=entry.name,
                display_name=entry.text(f"{DAV}displayname") or entry.name,
                href=entry.href,
            )
            for entry in parse_multistatus(response.content)
            if f"{CARDDAV}addressbook" in entry.resource_types()
        ]

    async def create_addressbook(
        self, name: str, display_name: Optional[str] = None
    ) -> AddressBook:
        """Create an address book collection called *name*."""
        url = self._addressbook_url(name)
        await self._request(
            "MKCOL",
            url,
            headers=XML_HEADERS,
            content=mkcol_addressbook(display_name or name),
        )
        logger.info("Created address book '%s'", name)
        return AddressBook(name=name, display_name=display_name or name, href=urlsplit(url).path)

    async def delete_addressbook(self, name: str) -> None:
        """Delete an address book and every contact in it."""
        await self._request("DELETE", self._addressbook_url(name))
        logger.info("Deleted address book '%s'", name)

    async def list_contacts(self, addressbook: str) -> list[Contact]:
        """All contacts of an address book."""
        response = await self._request(
            "REPORT",
            self._addressbook_url(addressbook),
            headers={**XML_HEADERS, "Depth": "1"},
            content=ADDRESSBOOK_QUERY,
        )
        contacts = []
        for entry in parse_multistatus(response.content):
            data = entry.text(f"{CARDDAV}address-data")
            if not data:
                continue
            card = parse_vcard(data)
            if not card["uid"]:
                card["uid"] = entry.name.removesuffix(".vcf")
            contacts.append(Contact(**card, href=entry.href, etag=entry.text(f"{DAV}getetag")))
        return contacts

    async def create_contact(
        self,
        addressbook: str,
        full_name: str,
        emails: Optional[list[str]] = None,
        phones: Optional[list[str]] = None,
        organization: Optional[str] = None,
    ) -> Contact:
        """Store a new vCard in *addressbook*."""
        uid = str(uuid.uuid4())
        url = f"{self._addressbook_url(addressbook)}{uid}.vcf"
        response = await self._request(
            "PUT",
            url,
            headers={**VCARD_HEADERS, "If-None-Match": "*"},
            content=build_vcard(uid, full_name, emails, phones, organization),
        )
        logger.info("Created contact %s in address book '%s'", uid, addressbook)
        return Contact(
            uid=uid,
            full_name=full_name,
            emails=emails or [],
            phones=phones or [],
            organization=organization,
            href=urlsplit(url).path,
            etag=response.headers.get("ETag"),
        )

    async def delete_contact(self, addressbook: str, uid: str) -> None:
        """Delete a contact by UID.

        Tries ``<uid>.vcf`` first, then looks the UID up in the address
        book for cards stored under another file name.
        """
        try:
            await self._request("DELETE", f"{self._addressbook_url(addressbook)}{quote(uid)}.vcf")
        except NotFoundError:
            for contact in await self.list_contacts(addressbook):
                if contact.uid == uid and contact.href:
                    await self._request("DELETE", self.href_url(contact.href))
                    break
            else:
                raise
        logger.info("Deleted contact %s from address book '%s'", uid, addressbook)
