"""Built-in partner format definitions.

Formats are plain data so new partners can be added (or loaded from settings)
without code changes. Field keys use the record's wire names; ``customer`` is
accepted as an alias for ``customerName``.
"""

from typing import Any

# Labelled fields common to partner documents. Appended after each partner's
# own patterns; the generic format carries none of them.
LABELLED_FIELD_PATTERNS: dict[str, list[str | dict[str, Any]]] = {
    "material": [
        {
            "pattern": r"(?<![A-Z0-9])(S14|SUS304|SUS316L?|SCS13|SCS14|SCS16|FCD400|FCD450|SCPH2|FC200|FC250)(?![A-Z0-9])",
            "flags": ["IGNORECASE"],
        },
        {"pattern": r"材質[\s:：]*([A-Z0-9]+)", "flags": ["IGNORECASE"]},
        {"pattern": r"Material[\s:：]*([A-Z0-9]+)", "flags": ["IGNORECASE"]},
    ],
    "unitWeight": [
        {"pattern": r"(?:単重量?|Unit\s*Weight)[\s:：]*([0-9]+\.?[0-9]*)\s*kg", "flags": ["IGNORECASE"]},
        {"pattern": r"重量[\s:：]*([0-9]+\.?[0-9]*)\s*kg", "flags": ["IGNORECASE"]},
        {"pattern": r"([0-9]+\.?[0-9]*)\s*kg", "flags": ["IGNORECASE"]},
    ],
    "quantity": [
        {"pattern": r"(?:数量|個数|Quantity|Qty)[\s:：]*([0-9][0-9,]*)", "flags": ["IGNORECASE"]},
        {"pattern": r"([0-9]+)\s*(?:個|ケ|pcs?|pieces?)", "flags": ["IGNORECASE"]},
        r"×\s*([0-9]+)",
    ],
    "deliveryDate": [
        {
            "pattern": r"(?:納期|納入日|Delivery\s*Date)[\s:：]*([0-9]{4}[年/\-][0-9]{1,2}[月/\-][0-9]{1,2}日?)",
            "flags": ["IGNORECASE"],
        },
        {
            "pattern": r"(?:納期|納入日|Delivery\s*Date)[\s:：]*([0-9]{1,2}[/\-][0-9]{1,2}[/\-][0-9]{4})",
            "flags": ["IGNORECASE"],
        },
    ],
}

_PARTNER_FORMATS: list[dict[str, Any]] = [
    {
        "id": "company_a",
        "name": "Company A format",
        "priority": 10,
        "indicators": [
            r"A株式会社",
            r"発注書[\s\n]*A-[0-9]+",
            r"注文伝票.*A社",
        ],
        "patterns": {
            "orderNumber": [
                {"pattern": r"発注番号[:：\s]*A-([0-9]{6})", "flags": ["IGNORECASE"]},
                {"pattern": r"Order\s*No[:：\s]*A([0-9]+)", "flags": ["IGNORECASE"]},
            ],
            "customer": [
                r"(A株式会社)",
            ],
            "productCode": [
                {"pattern": r"品番[:：\s]*A-([A-Z0-9\-]+)", "flags": ["IGNORECASE"]},
                {"pattern": r"型式[:：\s]*([A-Z]+[0-9]+A)", "flags": ["IGNORECASE"]},
            ],
        },
    },
    {
        "id": "company_b",
        "name": "Company B format",
        "priority": 10,
        "indicators": [
            r"B工業",
            r"受注No[:：\s]*B[0-9]+",
            r"B社発注明細",
        ],
        "patterns": {
            "orderNumber": [
                {"pattern": r"受注No[:：\s]*B([0-9]{8})", "flags": ["IGNORECASE"]},
                {"pattern": r"管理番号[:：\s]*([0-9]{8})", "flags": ["IGNORECASE"]},
            ],
            "productCode": [
                {"pattern": r"製品番号[:：\s]*B-([A-Z0-9\-]+)", "flags": ["IGNORECASE"]},
                # Company B's own part number layout, e.g. 12-AB3456
                r"([0-9]{2}-[A-Z]{2}[0-9]{4})",
            ],
        },
    },
    {
        "id": "construction_machinery",
        "name": "Construction machinery maker",
        "priority": 8,
        "indicators": [
            r"建機部品",
            r"油圧部品",
            r"ショベル",
            r"ブルドーザー",
        ],
        "patterns": {
            "productCode": [
                {"pattern": r"部品番号[:：\s]*([A-Z]{2}[0-9]{6}[A-Z]{2})", "flags": ["IGNORECASE"]},
                {"pattern": r"Parts?\s*No[:：\s]*([A-Z0-9\-]{8,15})", "flags": ["IGNORECASE"]},
            ],
            "productName": [
                {"pattern": r"(油圧[^【\n\r]*)", "flags": ["IGNORECASE"]},
                {"pattern": r"(シリンダ[^【\n\r]*)", "flags": ["IGNORECASE"]},
                {"pattern": r"(ピストン[^【\n\r]*)", "flags": ["IGNORECASE"]},
            ],
        },
    },
    {
        "id": "automotive",
        "name": "Automotive parts maker",
        "priority": 8,
        "indicators": [
            r"自動車部品",
            r"エンジン部品",
            r"トランスミッション",
            r"車両番号",
        ],
        "patterns": {
            "productCode": [
                {"pattern": r"部品番号[:：\s]*([0-9]{5}-[A-Z0-9]{5})", "flags": ["IGNORECASE"]},
                {"pattern": r"P/N[:：\s]*([A-Z0-9\-]{10,15})", "flags": ["IGNORECASE"]},
            ],
        },
    },
]


def with_labelled_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a format definition with the labelled fields appended."""
    patterns = {name: list(values) for name, values in data.get("patterns", {}).items()}
    for name, values in LABELLED_FIELD_PATTERNS.items():
        patterns[name] = patterns.get(name, []) + list(values)
    return {**data, "patterns": patterns}


BUILTIN_FORMATS: list[dict[str, Any]] = [with_labelled_fields(data) for data in _PARTNER_FORMATS]
