"""WebDAV request bodies and multistatus parsing shared by the DAV clients."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import unquote
from xml.sax.saxutils import escape

DAV = "{DAV:}"
CALDAV = "{urn:ietf:params:xml:ns:caldav}"
CARDDAV = "{urn:ietf:params:xml:ns:carddav}"
APPLE_ICAL = "{http://apple.com/ns/ical/}"

PROPFIND_COLLECTIONS = """<?xml version="1.0" encoding="utf-8"?>
<d:propfind xmlns:d="DAV:" xmlns:ical="http://apple.com/ns/ical/">
  <d:prop>
    <d:displayname/>
    <d:resourcetype/>
    <ical:calendar-color/>
  </d:prop>
</d:propfind>"""

PROPFIND_FILES = """<?xml version="1.0" encoding="utf-8"?>
<d:propfind xmlns:d="DAV:">
  <d:prop>
    <d:resourcetype/>
    <d:getcontentlength/>
    <d:getcontenttype/>
    <d:getlastmodified/>
    <d:getetag/>
  </d:prop>
</d:propfind>"""


@dataclass
class DavResponse:
    """One ``<d:response>`` of a multistatus body, successful props only."""

    href: str
    props: dict[str, ET.Element] = field(default_factory=dict)

    def text(self, name: str) -> Optional[str]:
        """Text of a property given in Clark notation, or None."""
        element = self.props.get(name)
        if element is None or element.text is None:
            return None
        return element.text.strip()

    def resource_types(self) -> set[str]:
        """Clark names of the children of ``<d:resourcetype>``."""
        element = self.props.get(f"{DAV}resourcetype")
        if element is None:
            return set()
        return {child.tag for child in element}

    @property
    def is_collection(self) -> bool:
        return f"{DAV}collection" in self.resource_types()

    @property
    def name(self) -> str:
        """Last path segment of the href, URL-decoded."""
        return unquote(self.href.rstrip("/").rsplit("/", 1)[-1])


def parse_multistatus(body: str | bytes) -> list[DavResponse]:
    """Parse a 207 Multi-Status body into DavResponse entries."""
    root = ET.fromstring(body)
    responses = []
    for node in root.iter(f"{DAV}response"):
        href = node.findtext(f"{DAV}href", default="").strip()
        entry = DavResponse(href=href)
        for propstat in node.iter(f"{DAV}propstat"):
            status = propstat.findtext(f"{DAV}status", default="")
            if " 200 " not in f"{status} ":
                continue
            prop = propstat.find(f"{DAV}prop")
            if prop is None:
                continue
            for child in prop:
                entry.props[child.tag] = child
        responses.append(entry)
    return responses


def calendar_query(start: Optional[str] = None, end: Optional[str] = None) -> str:
    """REPORT body selecting VEVENTs, optionally within a UTC time range."""
    time_range = ""
    if start or end:
        attrs = ""
        if start:
            attrs += f' start="{start}"'
        if end:
            attrs += f' end="{end}"'
        time_range = f"<c:time-range{attrs}/>"
    return f"""<?xml version="1.0" encoding="utf-8"?>
<c:calendar-query xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:caldav">
  <d:prop>
    <d:getetag/>
    <c:calendar-data/>
  </d:prop>
  <c:filter>
    <c:comp-filter name="VCALENDAR">
      <c:comp-filter name="VEVENT">{time_range}</c:comp-filter>
    </c:comp-filter>
  </c:filter>
</c:calendar-query>"""


ADDRESSBOOK_QUERY = """<?xml version="1.0" encoding="utf-8"?>
<card:addressbook-query xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:prop>
    <d:getetag/>
    <card:address-data/>
  </d:prop>
</card:addressbook-query>"""


def mkcol_addressbook(display_name: str) -> str:
    """Extended MKCOL body creating a CardDAV address book."""
    return f"""<?xml version="1.0" encoding="utf-8"?>
<d:mkcol xmlns:d="DAV:" xmlns:card="urn:ietf:params:xml:ns:carddav">
  <d:set>
    <d:prop>
      <d:resourcetype><d:collection/><card:addressbook/></d:resourcetype>
      <d:displayname>{escape(display_name)}</d:displayname>
    </d:prop>
  </d:set>
</d:mkcol>"""
