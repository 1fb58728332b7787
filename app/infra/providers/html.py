# app/infra/providers/html.py
"""HTML scraping helpers for download-page providers (SnapInsta, SnapTik)."""
from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup

_VIDEO_LABEL = re.compile(r"download\s+video", re.I)
_IMAGE_LABEL = re.compile(r"download\s+(image|photo)", re.I)


def _links_labelled(soup: BeautifulSoup, label: re.Pattern) -> list[str]:
    links: list[str] = []
    for anchor in soup.find_all("a", href=True):
        if label.search(anchor.get_text(" ", strip=True)):
            href = anchor["href"].strip()
            if href.startswith(("http://", "https://")):
                links.append(href)
    return links


def extract_download_links(html: str) -> tuple[list[str], list[str]]:
    """Return (video links, image links) from "Download Video/Image" anchors, in page order."""
    soup = BeautifulSoup(html, "lxml")
    return _links_labelled(soup, _VIDEO_LABEL), _links_labelled(soup, _IMAGE_LABEL)


def extract_first_image(html: str) -> Optional[str]:
    """First absolute <img src>, used as a thumbnail."""
    soup = BeautifulSoup(html, "lxml")
    for img in soup.find_all("img"):
        src = (img.get("src") or img.get("data-src") or "").strip()
        if src.startswith(("http://", "https://")):
            return src
    return None
