"""
User-facing message catalog.

Every error and success payload carries a stable code plus a message rendered
from this catalog in the configured locale. Unknown locales fall back to
English; unknown keys fall back to the key itself.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "booking_too_soon": "Bookings must be made at least {hours} hours in advance",
        "booking_too_far": "Lessons can only be booked up to {days} days ahead",
        "cancel_deadline_passed": "Lessons cannot be cancelled within {hours} hours of the start time",
        "modify_deadline_passed": "Lessons cannot be changed within {hours} hours of the start time",
        "max_modifications_reached": "A booking can be changed at most {max} times",
        "slot_taken": "Sorry, this time slot was just booked. Please choose another time",
        "new_slot_taken": "The new time slot is already booked. Please choose another time",
        "slot_not_offered": "Lessons can only start at the listed times within working hours",
        "booking_not_found": "Booking not found",
        "email_mismatch": "The email does not match this booking",
        "remote_unavailable": "The calendar service is temporarily unavailable. Please try again later",
        "internal_error": "An unexpected error occurred. Please try again later",
        "metadata_unreadable": "Unable to read the booking data",
        "invalid_input": "Invalid request",
        "invalid_timezone": "Unknown timezone: {timezone}",
        "invalid_date_format": "Invalid date format: {value}",
        "missing_date": "Please provide a date",
        "booking_created": "Booking confirmed! A confirmation email has been sent to you",
        "booking_modified": "Booking changed successfully",
        "booking_cancelled": "Booking cancelled successfully",
        "no_note": "None",
    },
    "zh-TW": {
        "booking_too_soon": "請至少提前 {hours} 小時預約",
        "booking_too_far": "只能預約 {days} 天內的課程",
        "cancel_deadline_passed": "課程開始前 {hours} 小時內無法取消",
        "modify_deadline_passed": "課程開始前 {hours} 小時內無法修改",
        "max_modifications_reached": "每次預約最多只能修改 {max} 次",
        "slot_taken": "抱歉，此時段剛被預約，請選擇其他時間",
        "new_slot_taken": "新的時段已被預約，請選擇其他時間",
        "slot_not_offered": "只能預約營業時間內提供的時段",
        "booking_not_found": "找不到此預約",
        "email_mismatch": "Email 與預約資料不符",
        "remote_unavailable": "行事曆服務暫時無法使用，請稍後再試",
        "internal_error": "發生錯誤，請稍後再試",
        "metadata_unreadable": "無法讀取預約資料",
        "invalid_input": "無效的請求",
        "invalid_timezone": "無效的時區：{timezone}",
        "invalid_date_format": "無效的日期格式，請使用 YYYY-MM-DD：{value}",
        "missing_date": "請提供日期參數",
        "booking_created": "預約成功！確認信已發送至您的信箱",
        "booking_modified": "預約已成功修改",
        "booking_cancelled": "預約已成功取消",
        "no_note": "無",
    },
    "ja": {
        "booking_too_soon": "{hours} 時間前までにご予約ください",
        "booking_too_far": "{days} 日先までのレッスンのみ予約できます",
        "cancel_deadline_passed": "レッスン開始 {hours} 時間前を過ぎるとキャンセルできません",
        "modify_deadline_passed": "レッスン開始 {hours} 時間前を過ぎると変更できません",
        "max_modifications_reached": "予約の変更は {max} 回までです",
        "slot_taken": "この時間枠は予約済みです。別の時間を選択してください",
        "new_slot_taken": "新しい時間枠は予約済みです。別の時間を選択してください",
        "slot_not_offered": "営業時間内の指定された時間枠のみ予約できます",
        "booking_not_found": "予約が見つかりません",
        "email_mismatch": "メールアドレスが予約情報と一致しません",
        "remote_unavailable": "カレンダーサービスに接続できません。しばらくしてから再度お試しください",
        "internal_error": "エラーが発生しました。しばらくしてから再度お試しください",
        "metadata_unreadable": "予約データを読み取れません",
        "invalid_input": "無効なリクエストです",
        "invalid_timezone": "無効なタイムゾーン: {timezone}",
        "invalid_date_format": "無効な日付形式です: {value}",
        "missing_date": "日付を指定してください",
        "booking_created": "予約が完了しました。確認メールを送信しました",
        "booking_modified": "予約を変更しました",
        "booking_cancelled": "予約をキャンセルしました",
        "no_note": "なし",
    },
}

SUPPORTED_LOCALES = frozenset(MESSAGES)


def translate(key: str, locale: str = DEFAULT_LOCALE, **params: Any) -> str:
    """Render a catalog message in the given locale."""
    catalog = MESSAGES.get(locale) or MESSAGES[DEFAULT_LOCALE]
    template = catalog.get(key) or MESSAGES[DEFAULT_LOCALE].get(key)
    if template is None:
        logger.warning("Missing message key %s (locale=%s)", key, locale)
        return key
    try:
        return template.format(**params)
    except KeyError as exc:
        logger.warning("Missing parameter %s for message %s", exc, key)
        return template
