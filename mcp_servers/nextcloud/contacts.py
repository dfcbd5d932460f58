"""Contacts tools backed by CardDAV."""

import logging
from typing import Optional

from mcp_servers.nextcloud.app import mcp
from mcp_servers.nextcloud.clients import get_client, prefix_tool_name
from nextcloud_client.contacts import ContactsClient

logger = logging.getLogger("nextcloud_mcp.contacts")


@mcp.tool(name=prefix_tool_name("contacts_list_addressbooks"))
async def list_addressbooks() -> dict:
    """List the user's address books."""
    books = await get_client(ContactsClient).list_addressbooks()
    logger.info("Tool list_addressbooks invoked — found=%d", len(books))
    return {"count": len(books), "addressbooks": [b.model_dump() for b in books]}


@mcp.tool(name=prefix_tool_name("contacts_create_addressbook"))
async def create_addressbook(name: str, display_name: Optional[str] = None) -> dict:
    """Create a new address book.

    Args:
        name: URL-safe name, e.g. "work".
        display_name: Optional human readable name.
    """
    book = await get_client(ContactsClient).create_addressbook(name, display_name)
    logger.info("Tool create_addressbook invoked — name=%s", name)
    return {"addressbook": book.model_dump(), "message": f"Address book '{name}' created."}


@mcp.tool(name=prefix_tool_name("contacts_delete_addressbook"))
async def delete_addressbook(name: str) -> dict:
    """Delete an address book together with all of its contacts."""
    await get_client(ContactsClient).delete_addressbook(name)
    logger.info("Tool delete_addressbook invoked — name=%s", name)
    return {"deleted": True, "name": name}


@mcp.tool(name=prefix_tool_name("contacts_list_contacts"))
async def list_contacts(addressbook: str) -> dict:
    """List contacts in an address book.

    Args:
        addressbook: Address book name, e.g. "contacts".

    Returns:
        Dictionary with contacts (uid, full_name, emails, phones,
        organization) and their count.
    """
    contacts = await get_client(ContactsClient).list_contacts(addressbook)
    logger.info(
        "Tool list_contacts invoked — addressbook='%s', found=%d", addressbook, len(contacts)
    )
    return {"count": len(contacts), "contacts": [c.model_dump() for c in contacts]}


@mcp.tool(name=prefix_tool_name("contacts_create_contact"))
async def create_contact(
    addressbook: str,
    full_name: str,
    emails: Optional[list[str]] = None,
    phones: Optional[list[str]] = None,
    organization: Optional[str] = None,
) -> dict:
    """Create a contact.

    Args:
        addressbook: Address book name.
        full_name: Display name, e.g. "Ada Lovelace".
        emails: Optional email addresses.
        phones: Optional phone numbers.
        organization: Optional company or organization.

    Returns:
        Dictionary with the created contact including its uid.
    """
    contact = await get_client(ContactsClient).create_contact(
        addressbook, full_name, emails, phones, organization
    )
    logger.info("Tool create_contact invoked — uid=%s", contact.uid)
    return {"contact": contact.model_dump(), "message": f"Contact '{full_name}' created."}


@mcp.tool(name=prefix_tool_name("contacts_delete_contact"))
async def delete_contact(addressbook: str, uid: str) -> dict:
    """Delete a contact by its uid."""
    await get_client(ContactsClient).delete_contact(addressbook, uid)
    logger.info("Tool delete_contact invoked — uid=%s", uid)
    return {"deleted": True, "uid": uid}
