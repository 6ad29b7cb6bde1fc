"""Publish a rendered carousel to Instagram.

The Instagram Graph API only accepts images by public URL, so slides are first
committed to a GitHub repository through the contents API and served from
``raw.githubusercontent.com``. Publishing then takes three steps:

1. create one carousel-item container per image,
2. create a ``CAROUSEL`` container referencing those items and the caption,
3. publish the carousel container.

Access tokens are taken as given; obtaining and refreshing them is left to the
caller. Requests are made with ``requests``; pass ``session`` to reuse a
connection pool or to substitute a fake in tests.
"""

from __future__ import annotations

import base64
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests

GRAPH_API_URL = "https://graph.facebook.com"
GRAPH_API_VERSION = "v18.0"
GITHUB_API_URL = "https://api.github.com"
MAX_CAROUSEL_ITEMS = 10
TEST_MODE_ID = "TEST_MODE"


class PublishError(RuntimeError):
    """Raised when GitHub or Instagram does not return the expected identifier."""


def upload_to_github(
    image_path: str | Path,
    repo: str,
    token: str,
    branch: str = "main",
    folder: str = "temp-images",
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> str:
    """Commit an image to ``repo`` and return its raw download URL.

    Parameters
    ----------
    image_path: str or Path
        PNG file to upload. Its file name is kept.
    repo: str
        ``owner/name`` of the repository used as temporary hosting.
    token: str
        GitHub token with contents write access.
    branch: str, optional
        Branch to commit to. Defaults to ``main``.
    folder: str, optional
        Directory inside the repository. Defaults to ``temp-images``.

    Returns
    -------
    str
        ``https://raw.githubusercontent.com/{repo}/{branch}/{folder}/{name}``

    Raises
    ------
    FileNotFoundError
        If ``image_path`` does not exist.
    requests.HTTPError
        If the commit is rejected.
    """
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    if session is None:
        with requests.Session() as owned:
            return upload_to_github(
                path, repo, token, branch=branch, folder=folder, session=owned, timeout=timeout
            )
    http = session
    repo_path = f"{folder}/{path.name}"
    url = f"{GITHUB_API_URL}/repos/{repo}/contents/{repo_path}"
    headers = {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
    }

    # an existing file must be replaced by SHA
    sha = None
    existing = http.get(url, headers=headers, params={"ref": branch}, timeout=timeout)
    if existing.status_code == 200:
        sha = existing.json().get("sha")
        logging.info("Replacing existing %s (sha %s)", repo_path, sha)

    body: Dict[str, Any] = {
        "message": f"Add temporary image {path.name}",
        "content": base64.b64encode(path.read_bytes()).decode("ascii"),
        "branch": branch,
    }
    if sha:
        body["sha"] = sha
    response = http.put(url, headers=headers, json=body, timeout=timeout)
    response.raise_for_status()
    public_url = f"https://raw.githubusercontent.com/{repo}/{branch}/{repo_path}"
    logging.info("Uploaded %s to %s", path, public_url)
    return public_url


def _graph_post(
    http: requests.Session,
    endpoint: str,
    data: Dict[str, Any],
    timeout: float,
) -> str:
    response = http.post(endpoint, data=data, timeout=timeout)
    try:
        payload = response.json()
    except ValueError:
        payload = {"raw": response.text}
    media_id = payload.get("id") if isinstance(payload, dict) else None
    if not media_id:
        raise PublishError(f"Graph API call to {endpoint} failed: {payload}")
    return str(media_id)


def post_carousel(
    image_urls: Sequence[str],
    caption: str,
    account_id: str,
    access_token: str,
    session: Optional[requests.Session] = None,
    test_mode: bool = False,
    graph_version: str = GRAPH_API_VERSION,
    item_delay: float = 1.0,
    timeout: float = 30,
) -> str:
    """Publish ``image_urls`` as one carousel post and return its media ID.

    Parameters
    ----------
    image_urls: sequence of str
        Publicly reachable image URLs, title slide first. At most ten.
    caption: str
        Caption of the post.
    account_id: str
        Instagram business account ID.
    access_token: str
        Graph API access token for that account.
    test_mode: bool, optional
        Validate the arguments and return ``"TEST_MODE"`` without any
        network access.
    item_delay: float, optional
        Seconds to wait between item container requests.

    Raises
    ------
    ValueError
        If there are no images, more than ten, or credentials are missing.
    PublishError
        If any Graph API response lacks an ``id``.
    """
    if not image_urls:
        raise ValueError("A carousel needs at least one image")
    if len(image_urls) > MAX_CAROUSEL_ITEMS:
        raise ValueError(
            f"Instagram carousels hold at most {MAX_CAROUSEL_ITEMS} items, got {len(image_urls)}"
        )
    if test_mode:
        logging.info("Test mode - would publish %d images", len(image_urls))
        return TEST_MODE_ID
    if not access_token or not account_id:
        raise ValueError("Missing Instagram credentials")
    if session is None:
        with requests.Session() as owned:
            return post_carousel(
                image_urls,
                caption,
                account_id,
                access_token,
                session=owned,
                graph_version=graph_version,
                item_delay=item_delay,
                timeout=timeout,
            )

    http = session
    media_endpoint = f"{GRAPH_API_URL}/{graph_version}/{account_id}/media"

    children: List[str] = []
    for i, url in enumerate(image_urls):
        if i and item_delay:
            time.sleep(item_delay)
        media_id = _graph_post(
            http,
            media_endpoint,
            {
                "image_url": url,
                "is_carousel_item": "true",
                "media_type": "IMAGE",
                "access_token": access_token,
            },
            timeout,
        )
        logging.info("Created carousel item %s for %s", media_id, url)
        children.append(media_id)

    container_id = _graph_post(
        http,
        media_endpoint,
        {
            "media_type": "CAROUSEL",
            "children": ",".join(children),
            "caption": caption,
            "access_token": access_token,
        },
        timeout,
    )
    logging.info("Created carousel container %s", container_id)

    post_id = _graph_post(
        http,
        f"{GRAPH_API_URL}/{graph_version}/{account_id}/media_publish",
        {"creation_id": container_id, "access_token": access_token},
        timeout,
    )
    logging.info("Published carousel %s", post_id)
    return post_id
