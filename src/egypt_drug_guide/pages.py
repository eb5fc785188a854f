# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""Editable page content (about, contact) stored under ``pages/{name}``."""

import copy
from typing import Any, Final

from loguru import logger

from egypt_drug_guide.exceptions import RemoteStoreError
from egypt_drug_guide.remote import RemoteStore

DEFAULT_ABOUT_CONTENT: Final[dict[str, Any]] = {
    "title": "عن موقع دليل الأدوية",
    "intro": "منصة شاملة لمتابعة أسعار الأدوية في مصر، نهدف لتوفير معلومات دقيقة ومحدثة لمساعدة المرضى والصيادلة",
    "missionTitle": "رسالتنا",
    "missionText": (
        "نسعى لتوفير منصة موثوقة وسهلة الاستخدام لمتابعة أسعار الأدوية في السوق المصري، "
        "مما يساعد المواطنين على اتخاذ قرارات مدروسة بشأن احتياجاتهم الطبية"
    ),
    "features": [
        {"title": "تحديث فوري", "description": "نوفر أحدث أسعار الأدوية من مصادر موثوقة مع تحديث مستمر للبيانات"},
        {"title": "معلومات موثوقة", "description": "جميع البيانات مستمدة من مصادر رسمية ومعتمدة"},
        {"title": "سهولة الاستخدام", "description": "واجهة بسيطة ومفهومة تتيح للجميع البحث والعثور على المعلومات"},
    ],
    "stats": [
        {"value": "1000+", "label": "دواء مسجل"},
        {"value": "50+", "label": "شركة أدوية"},
        {"value": "24/7", "label": "تحديث مستمر"},
    ],
    "teamIntro": "فريق متخصص من الصيادلة والمطورين يعمل على توفير أفضل خدمة للمستخدمين",
}

DEFAULT_CONTACT_CONTENT: Final[dict[str, Any]] = {
    "title": "تواصل معنا",
    "intro": "نحن هنا لمساعدتك! تواصل معنا لأي استفسارات أو اقتراحات حول موقع دليل الأدوية",
    "email1": "info@drugguide.com",
    "email2": "support@drugguide.com",
    "phone1": "+20 123 456 7890",
    "phone2": "+20 987 654 3210",
    "address1": "القاهرة، مصر",
    "address2": "شارع التحرير، وسط البلد",
    "workHours1": "الأحد - الخميس: 9:00 ص - 6:00 م",
    "workHours2": "الجمعة - السبت: 10:00 ص - 4:00 م",
    "responseTitle": "استجابة سريعة",
    "responseText": "نرد على جميع الاستفسارات خلال 24 ساعة",
    "faqTitle": "الأسئلة الشائعة",
    "faqs": [
        {"q": "كم مرة يتم تحديث الأسعار؟", "a": "يتم تحديث أسعار الأدوية يومياً من المصادر الرسمية"},
        {"q": "هل الموقع مجاني؟", "a": "نعم، جميع خدمات الموقع مجانية بالكامل"},
    ],
}

PAGE_DEFAULTS: Final[dict[str, dict[str, Any]]] = {
    "about": DEFAULT_ABOUT_CONTENT,
    "contact": DEFAULT_CONTACT_CONTENT,
}


class PageContentService:
    def __init__(self, store: RemoteStore) -> None:
        self.store = store

    def get_page_content(self, page_name: str) -> dict[str, Any]:
        """
        Return the content of a page, falling back to the built-in defaults.

        Stored fields override defaults one key at a time, so a partial
        document still renders completely. Failures return the defaults.
        """
        content = copy.deepcopy(PAGE_DEFAULTS.get(page_name, {}))
        try:
            data = self.store.get(f"pages/{page_name}")
        except RemoteStoreError as e:
            logger.error(f"Error fetching {page_name} page content: {e}")
            return content
        if isinstance(data, dict):
            content.update(data)
        return content

    def save_page_content(self, page_name: str, content: dict[str, Any]) -> bool:
        try:
            self.store.put(f"pages/{page_name}", content)
            return True
        except RemoteStoreError as e:
            logger.error(f"Error saving {page_name} content: {e}")
            return False
