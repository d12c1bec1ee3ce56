from __future__ import annotations

from typing import Dict


_LANGUAGE_NAMES: Dict[str, str] = {
    "ar": "Arabic",
    "bg": "Bulgarian",
    "bs": "Bosnian",
    "cs": "Czech",
    "da": "Danish",
    "de": "German",
    "el": "Greek",
    "en": "English",
    "es": "Spanish",
    "fi": "Finnish",
    "fr": "French",
    "he": "Hebrew",
    "hi": "Hindi",
    "hr": "Croatian",
    "hu": "Hungarian",
    "id": "Indonesian",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "mk": "Macedonian",
    "nl": "Dutch",
    "no": "Norwegian",
    "pl": "Polish",
    "pt": "Portuguese",
    "ro": "Romanian",
    "ru": "Russian",
    "sk": "Slovak",
    "sl": "Slovenian",
    "sq": "Albanian",
    "sr": "Serbian",
    "sv": "Swedish",
    "tr": "Turkish",
    "uk": "Ukrainian",
    "vi": "Vietnamese",
    "zh": "Chinese",
}


def describe_language(code: str) -> str:
    """
    将语言代码转换为传给 LLM 的可读描述，例如 "sq" -> "Albanian (sq)"。

    未知代码（或已经是语言名称的输入）原样返回，避免错误映射。
    """
    if not code:
        return "the source language"
    raw = code.strip()
    name = _LANGUAGE_NAMES.get(raw.lower())
    if name is None:
        return raw
    return f"{name} ({raw.lower()})"
