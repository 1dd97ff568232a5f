import random

# Двухзначные коды сущностей
TYPE_POSTFIX = {
    "users": 1,
    "preference_tags": 2,
    "matches": 5,
    "messages": 6,
    "abuse_reports": 7,
}


def generate_random_id(entity: str) -> int:
    """Возвращает id: 7 случайных цифр + 2-значный постфикс сущности."""
    if entity not in TYPE_POSTFIX:
        raise ValueError(f"Unknown entity for ID generation: {entity}")
    rand7 = random.randint(1_000_000, 9_999_999)
    postfix = TYPE_POSTFIX[entity]
    return rand7 * 100 + postfix
