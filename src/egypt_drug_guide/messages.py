# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/egypt_drug_guide

"""User-facing (Egyptian Arabic) status messages."""

from typing import Final


class Messages:
    """Localized messages shown to end users and admins."""

    # Catalog fetch
    OFFLINE: Final[str] = "لا يوجد اتصال بالإنترنت"
    OFFLINE_CHECK: Final[str] = "لا يوجد اتصال بالإنترنت، يرجى التحقق من الاتصال"
    TIMEOUT: Final[str] = "انتهت مهلة الاتصال، يرجى المحاولة مرة أخرى"
    NOT_FOUND: Final[str] = "البيانات غير موجودة في قاعدة البيانات"
    SERVER_ERROR: Final[str] = "خطأ في الخادم، يرجى المحاولة لاحقاً"
    LOAD_ERROR: Final[str] = "خطأ في التحميل: {status}"
    NO_DRUG_DATA: Final[str] = "لم يتم العثور على بيانات أدوية صحيحة"
    NO_VALID_DATA: Final[str] = "لم يتم العثور على بيانات صحيحة"
    LOAD_FAILED: Final[str] = "فشل في تحميل البيانات"

    # Import
    INVALID_FILE: Final[str] = "ملف غير صالح - يجب أن يكون ملف JSON صحيح"
    INVALID_FORMAT: Final[str] = "تنسيق الملف غير صحيح"
    FILE_READ_ERROR: Final[str] = "خطأ في قراءة الملف"
    INVALID_CSV: Final[str] = "ملف CSV غير صالح"
    CSV_TOO_SHORT: Final[str] = "الملف يجب أن يحتوي على رأس الجدول وسطر واحد على الأقل من البيانات"
    CSV_MISSING_HEADERS: Final[str] = "الأعمدة المطلوبة مفقودة: {columns}"
    ROW_INVALID: Final[str] = "السطر {key}: بيانات غير صالحة"
    ROW_NAME_REQUIRED: Final[str] = "السطر {key}: اسم الدواء مطلوب"
    ROW_PRICE_INVALID: Final[str] = "السطر {key}: السعر الجديد غير صالح"
    IMPORT_SUCCESS: Final[str] = "تم استيراد {count} دواء بنجاح"
    IMPORT_WITH_ERRORS: Final[str] = " مع {count} خطأ"
    IMPORT_SAVE_FAILED: Final[str] = "فشل في حفظ البيانات: {status}"
    IMPORT_PROCESS_FAILED: Final[str] = "فشل في معالجة البيانات"
    REMOTE_EMPTY: Final[str] = "لا توجد بيانات في Firebase"
    REMOTE_UNREACHABLE: Final[str] = "فشل في الاتصال بـ Firebase"
    EXPORT_FAILED: Final[str] = "فشل في تصدير البيانات"

    # Commands
    NO_DATA: Final[str] = "لا توجد بيانات متاحة"
    RECORDS_OK: Final[str] = "تم جلب سجلات الموقع بنجاح"
    RECORDS_FAILED: Final[str] = "فشل في جلب سجلات الموقع"
    NO_EXPORT_DATA: Final[str] = "لا توجد بيانات للتصدير"
    EXPORT_OK: Final[str] = "تم تصدير البيانات بنجاح"
    CLEAR_OK: Final[str] = "تم مسح جميع البيانات بنجاح"
    CLEAR_FAILED: Final[str] = "فشل في مسح البيانات"
    NO_INFO: Final[str] = "لا توجد معلومات متاحة"
    INFO_OK: Final[str] = "تم جلب معلومات النظام بنجاح"
    INFO_FAILED: Final[str] = "فشل في جلب معلومات النظام"
    NO_BACKUP_DATA: Final[str] = "لا توجد بيانات للنسخ الاحتياطي"
    BACKUP_OK: Final[str] = "تم إنشاء نسخة احتياطية بنجاح"
    BACKUP_FAILED: Final[str] = "فشل في إنشاء النسخة الاحتياطية"
    UNKNOWN_COMMAND: Final[str] = 'الأمر "{command}" غير معروف. الأوامر المتاحة: {available}'
    NOT_SET: Final[str] = "غير محدد"
    SECURED: Final[str] = "مؤمن"
    ACTIVE: Final[str] = "نشط"
