import json
import os
import structlog
from flask import request, session

from churchsite.constants import BUILD_VERSION, DEFAULT_LOCALE, SUPPORTED_LOCALES

logger = structlog.get_logger('i18n')

LOCALE_COOKIE = 'language'


class I18n:
    def __init__(self, app=None, translations_dir=None):
        self.translations = {}
        self.default_locale = DEFAULT_LOCALE
        self.translations_dir = translations_dir
        if app:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        if self.translations_dir is None:
            self.translations_dir = os.path.join(app.root_path, 'translations')
        self.load_translations()
        app.context_processor(self.context_processor)

    def load_translations(self):
        if not os.path.exists(self.translations_dir):
            return

        for filename in os.listdir(self.translations_dir):
            if filename.endswith('.json'):
                locale = filename[:-5]
                try:
                    with open(os.path.join(self.translations_dir, filename), 'r', encoding='utf-8') as f:
                        self.translations[locale] = json.load(f)
                except (OSError, ValueError) as e:
                    logger.error(f"Error loading translation {filename}: {e}")

    def get_locale(self):
        # 1. Language cookie
        cookie_lang = request.cookies.get(LOCALE_COOKIE)
        if cookie_lang in SUPPORTED_LOCALES:
            return cookie_lang

        # 2. Session (set by the language switcher)
        session_lang = session.get('lang')
        if session_lang in SUPPORTED_LOCALES:
            return session_lang

        return self.default_locale

    def t(self, key):
        locale = self.get_locale()
        # Fallback to default if key missing in locale
        return self.translations.get(locale, {}).get(key, self.translations.get(self.default_locale, {}).get(key, key))

    def context_processor(self):
        return dict(
            t=self.t,
            get_locale=self.get_locale,
            current_lang=self.get_locale(),
            current_path=request.path,
            build_version=BUILD_VERSION
        )
