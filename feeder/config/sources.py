"""
Central source configuration for feeder.

URL templates, discovery paths and detection tables used by the feed
sources live here. The detection order itself is defined by the source
registry; this module only holds the data each source consults.
"""

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

HTTP_HEADERS: dict[str, str] = {
    "User-Agent": "Mozilla/5.0 (compatible; feeder/1.0; +https://github.com/feeder)"
}

DEFAULT_TIMEOUT: float = 30.0

# ---------------------------------------------------------------------------
# Generic feed discovery
# Tried in order against the site origin when the URL given by the user
# is not itself a feed.
# ---------------------------------------------------------------------------

DISCOVERY_PATHS: list[str] = [
    "/feed/",
    "/index.xml",
    "/atom.xml",
    "/rss.xml",
    "/feed.xml",
    "/rss",
    "/feed",
    "/feeds/posts/default",
    "/.rss",
]

# ---------------------------------------------------------------------------
# YouTube
# ---------------------------------------------------------------------------

YOUTUBE_FEED_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"

YOUTUBE_CHANNEL_PATHS: tuple[str, ...] = ("/channel/", "/@", "/c/", "/user/")

# Channel page tabs stripped before resolving the channel id.
YOUTUBE_TAB_SEGMENTS: list[str] = [
    "/videos",
    "/shorts",
    "/streams",
    "/playlists",
    "/community",
    "/channels",
    "/about",
    "/featured",
]

YOUTUBE_HOSTS: tuple[str, ...] = ("youtube.com", "youtu.be")

# ---------------------------------------------------------------------------
# Mastodon / Fediverse
# ---------------------------------------------------------------------------

MASTODON_FEED_URL = "https://{instance}/users/{username}.rss"

MASTODON_TITLE_LENGTH = 200

# ---------------------------------------------------------------------------
# WordPress / Blogger
# ---------------------------------------------------------------------------

WORDPRESS_HOST = "wordpress.com"
WORDPRESS_API_PATH = "/wp-json/"
WORDPRESS_FEED_PATH = "/feed/"

BLOGGER_HOST_SUFFIX = ".blogspot.com"
BLOGGER_FEED_PATH = "/feeds/posts/default"
