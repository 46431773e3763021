import posixpath
from urllib.parse import urlparse

def derive_url(settings, relative_path: str) -> str:
    """Build the page URL for a file path relative to the sitemap root."""
    path = relative_path.replace("\\", "/").lstrip("/")
    file_base_name = posixpath.splitext(posixpath.basename(path))[0]

    if settings.remove_file_extensions:
        path = posixpath.join(posixpath.dirname(path), file_base_name)

    # index pages are served from their directory
    if file_base_name.lower() == "index":
        path = posixpath.dirname(path)
        if path == ".":
            path = ""

    if path:
        path = "/" + path

    url = f"{settings.protocol}://"
    if settings.include_www:
        url += "www."
    url += settings.domain_name + path
    if settings.use_trailing_slash and path and "." not in path:
        url += "/"
    return url

def url_depth(url: str) -> int:
    """Number of path levels below the site root (0 for root-level pages)."""
    return max(url[:-1].count("/") - 2, 0)

def calculate_priority(depth: int, max_depth: int) -> float:
    """Priority in the range 0.0 - 1.0, shallower pages rank higher."""
    if max_depth < 0:
        raise ValueError("Cannot calculate a priority against an empty set of URLs")
    priority = 1 - depth / (max_depth + 1)
    return min(max(priority, 0.0), 1.0)

def url_identity(url: str) -> str:
    """Key identifying the same page regardless of scheme, www. prefix or trailing slash."""
    if "://" not in url:
        url = "//" + url
    return urlparse(url).path.rstrip("/")
