import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.dirname(APP_DIR)
CONFIG_DIR = os.environ.get('CHURCHSITE_CONFIG_DIR', os.path.join(ROOT_DIR, 'config'))
DATA_DIR = os.path.join(ROOT_DIR, 'data')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'settings.yaml')
TRANSLATIONS_DIR = os.path.join(APP_DIR, 'translations')

BUILD_VERSION = '20261018_0900'

JSONBIN_API_URL = 'https://api.jsonbin.io/v3/b'
REMOTE_CACHE_TTL = 30  # seconds
REMOTE_TIMEOUT = 10  # seconds

DEFAULT_LOCALE = 'en'
TRANSLATED_LOCALE = 'ta'
SUPPORTED_LOCALES = [DEFAULT_LOCALE, TRANSLATED_LOCALE]

DEFAULT_ADMIN_SETTINGS = {
    "username": "admin",
    "password": "church123",
}

DEFAULT_SETTINGS = {
    "storage": {
        "content_dir": DATA_DIR,
        "upload_dir": os.path.join(DATA_DIR, 'uploads'),
    },
    "remote": {
        "api_url": JSONBIN_API_URL,
        "bin_id": "",
        "admin_bin_id": "",
        "secret": "",
        "cache_ttl": REMOTE_CACHE_TTL,
        "timeout": REMOTE_TIMEOUT,
    },
    "site": {
        "name": "Grace Church",
        "home_events": 3,
    },
}

# Paired list collections. "text" fields are edited per locale, "shared"
# fields are copied verbatim into both records of a pair.
COLLECTIONS = {
    "team": {
        "title": "Team",
        "text": ["name", "role", "quote"],
        "shared": ["image"],
        "upload": {"field": "image", "category": "team", "placeholder": "https://via.placeholder.com/150"},
    },
    "events": {
        "title": "Events",
        "text": ["title", "description"],
        "shared": ["date", "image"],
    },
    "sermons": {
        "title": "Sermons",
        "text": ["title", "preacher", "description"],
        "shared": ["date", "videoUrl", "audioUrl"],
    },
    "services": {
        "title": "Services",
        "text": ["name", "day", "location"],
        "shared": ["time"],
    },
    "gallery": {
        "title": "Gallery",
        "text": ["caption"],
        "shared": ["url", "category"],
        "upload": {"field": "url", "category": "gallery", "placeholder": ""},
    },
    "categories": {
        "title": "Categories",
        "text": ["name"],
        "shared": [],
    },
}

# Singleton documents edited as en/ta pairs
DOCUMENTS = {
    "home": {
        "title": "Home",
        "text": ["heroTitle", "heroText", "verse"],
        "shared": [],
    },
    "about": {
        "title": "About Us",
        "text": ["title", "lead", "visionTitle", "visionText", "missionTitle", "missionText", "leadershipTitle"],
        "shared": [],
    },
    "contact": {
        "title": "Contact Us",
        "text": ["address", "hours"],
        "shared": ["phone", "email", "mapUrl"],
    },
    "donate": {
        "title": "Donate",
        "text": ["title", "text", "bankDetails"],
        "shared": ["paymentLink"],
    },
}

PRAYERS_KEY = 'prayers'

LIVE_STREAM_FIELDS = ['liveStreamEnabled', 'liveStreamTitle', 'liveStreamText', 'liveStreamLink']
