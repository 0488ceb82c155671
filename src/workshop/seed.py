"""Default catalog seed: roles, characters, quizzes, a marathon, an interactive,
shop items, channel posts, achievements and policy settings.

Each entry is inserted only when no row with the same natural key (name,
title, post id or setting key) exists, so the seed is safe to run on every
startup and never overwrites admin edits.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.db.enums import DEFAULT_CAPABILITIES, AdminRole
from workshop.db.models import (
    Achievement,
    Admin,
    AppSetting,
    ChannelPost,
    Character,
    Interactive,
    Marathon,
    Quiz,
    Role,
    ShopItem,
    User,
)
from workshop.policy import POLICY_KEYS
from workshop.utils import utcnow

logger = logging.getLogger(__name__)

_BUTTONS = [c.value for c in DEFAULT_CAPABILITIES]

ROLE_SEED_DATA: list[dict[str, Any]] = [
    {"name": "Художник", "description": "Живопись, графика и иллюстрация", "icon": "🎨", "display_order": 1},
    {"name": "Писатель", "description": "Проза, поэзия и сторителлинг", "icon": "✍️", "display_order": 2},
    {"name": "Дизайнер", "description": "Графический и цифровой дизайн", "icon": "🖌️", "display_order": 3},
]

# role name -> characters
CHARACTER_SEED_DATA: dict[str, list[dict[str, Any]]] = {
    "Художник": [
        {
            "name": "Импрессионист",
            "description": "Ловит мгновения света: +15% искр за квизы",
            "bonus_type": "percent_bonus",
            "bonus_value": "15",
        },
        {
            "name": "Сюрреалист",
            "description": "Случайный подарок каждые 3 дня",
            "bonus_type": "random_gift",
            "bonus_value": "3",
        },
    ],
    "Писатель": [
        {
            "name": "Поэт",
            "description": "Прощение двух пропущенных дней серии",
            "bonus_type": "forgiveness",
            "bonus_value": "2",
        },
        {
            "name": "Прозаик",
            "description": "Бонус за серию из 5 активностей",
            "bonus_type": "series_bonus",
            "bonus_value": "5",
        },
    ],
    "Дизайнер": [
        {
            "name": "Графический дизайнер",
            "description": "Секретный совет раз в неделю",
            "bonus_type": "secret_advice",
            "bonus_value": "7",
        },
        {
            "name": "UI/UX дизайнер",
            "description": "+10% искр за квизы",
            "bonus_type": "percent_bonus",
            "bonus_value": "10",
        },
    ],
}

QUIZ_SEED_DATA: list[dict[str, Any]] = [
    {
        "title": "🎨 Основы живописи",
        "description": "Проверьте свои знания основ живописи",
        "questions": [
            {
                "question": "Кто написал картину 'Мона Лиза'?",
                "options": ["Винсент Ван Гог", "Леонардо да Винчи", "Пабло Пикассо", "Клод Моне"],
                "correct_answer": 1,
                "explanation": "«Мона Лиза» написана Леонардо да Винчи в начале XVI века.",
            },
            {
                "question": "Какие цвета являются основными?",
                "options": [
                    "Красный, синий, зеленый",
                    "Красный, желтый, синий",
                    "Фиолетовый, оранжевый, зеленый",
                    "Черный, белый, серый",
                ],
                "correct_answer": 1,
                "explanation": "В традиционной живописи основные цвета: красный, желтый и синий.",
            },
        ],
        "sparks_per_correct": 2,
        "sparks_perfect_bonus": 5,
    },
    {
        "title": "👗 История моды",
        "description": "Тест по истории моды и стиля",
        "questions": [
            {
                "question": "В каком веке появился первый кринолин?",
                "options": ["16 век", "17 век", "18 век", "19 век"],
                "correct_answer": 2,
                "explanation": "",
            },
            {
                "question": "Кто считается основателем модного дома Chanel?",
                "options": ["Коко Шанель", "Кристиан Диор", "Ив Сен-Лоран", "Живанши"],
                "correct_answer": 0,
                "explanation": "",
            },
        ],
        "sparks_per_correct": 2,
        "sparks_perfect_bonus": 5,
    },
]

MARATHON_SEED_DATA: list[dict[str, Any]] = [
    {
        "title": "🌅 Неделя скетчинга",
        "description": "Семь дней коротких ежедневных зарисовок",
        "duration_days": 7,
        "sparks_per_day": 7,
        "sparks_completion_bonus": 50,
        "tasks": [
            {"day": 1, "title": "Линии и штриховка", "description": "Заполните страницу штриховкой разной плотности",
             "requires_submission": False},
            {"day": 2, "title": "Простые формы", "description": "Нарисуйте кружку, используя цилиндр и эллипсы",
             "requires_submission": False},
            {"day": 3, "title": "Светотень", "description": "Покажите объем яблока светом и тенью",
             "requires_submission": True},
            {"day": 4, "title": "Перспектива", "description": "Скетч улицы с одной точкой схода",
             "requires_submission": False},
            {"day": 5, "title": "Фактуры", "description": "Передайте фактуру дерева, ткани и камня",
             "requires_submission": False},
            {"day": 6, "title": "Люди в движении", "description": "Десять быстрых набросков фигур",
             "requires_submission": False},
            {"day": 7, "title": "Итоговая работа", "description": "Соберите навыки недели в одном скетче",
             "requires_submission": True, "sparks_reward": 15},
        ],
    },
]

INTERACTIVE_SEED_DATA: list[dict[str, Any]] = [
    {
        "title": "🎯 Угадай стиль",
        "description": "Определите художественное направление",
        "question": "Какое направление известно «Постоянством памяти» с растекающимися часами?",
        "options": ["Кубизм", "Сюрреализм", "Импрессионизм", "Поп-арт"],
        "correct_answer": 1,
        "explanation": "Картину написал Сальвадор Дали, главный сюрреалист XX века.",
        "sparks_reward": 3,
    },
]

SHOP_SEED_DATA: list[dict[str, Any]] = [
    {
        "title": "🎨 Урок акварели для начинающих",
        "description": "Полный видеоурок по основам акварельной живописи",
        "type": "video",
        "file_url": "https://example.com/watercolor-course.mp4",
        "preview_url": "https://example.com/watercolor-preview.jpg",
        "price": 15,
        "content_text": "В этом уроке вы научитесь основам работы с акварелью, смешиванию цветов и созданию первых работ.",
    },
    {
        "title": "📚 Гайд по композиции",
        "description": "PDF руководство по построению гармоничной композиции",
        "type": "ebook",
        "file_url": "https://example.com/composition-guide.pdf",
        "preview_url": "https://example.com/composition-preview.jpg",
        "price": 10,
    },
    {
        "title": "💡 Секреты цветовых сочетаний",
        "description": "Материал о психологии цвета и гармоничных сочетаниях",
        "type": "material",
        "preview_url": "https://example.com/color-preview.jpg",
        "price": 8,
        "content_text": (
            "Цвет - это мощный инструмент в руках художника. Основные принципы: "
            "контраст, нюанс, тёплые и холодные тона."
        ),
    },
]

POST_SEED_DATA: list[dict[str, Any]] = [
    {
        "post_id": "post_art_basics",
        "title": "🎨 Основы композиции в живописи",
        "content": "Золотое сечение, правило третей и другие принципы построения композиции.",
        "image_url": "https://example.com/composition-post.jpg",
        "featured": True,
    },
    {
        "post_id": "post_color_psychology",
        "title": "🌈 Психология цвета в искусстве",
        "content": "Красный - страсть, синий - спокойствие, жёлтый - энергия. Как цвета влияют на восприятие?",
        "image_url": "https://example.com/color-psychology.jpg",
    },
]

ACHIEVEMENT_SEED_DATA: list[dict[str, Any]] = [
    {"title": "Первые шаги", "description": "Завершите регистрацию", "icon": "👣",
     "condition_type": "registration", "condition_value": "1", "sparks_reward": 5},
    {"title": "Знаток", "description": "Пройдите первый квиз", "icon": "🧠",
     "condition_type": "quiz_completion", "condition_value": "1", "sparks_reward": 5},
    {"title": "Перфекционист", "description": "Пройдите квиз без ошибок", "icon": "💯",
     "condition_type": "perfect_quiz", "condition_value": "1", "sparks_reward": 10},
    {"title": "Автор", "description": "Загрузите первую работу", "icon": "🖼️",
     "condition_type": "work_upload", "condition_value": "1", "sparks_reward": 5},
    {"title": "Марафонец", "description": "Завершите марафон", "icon": "🏁",
     "condition_type": "marathon_completion", "condition_value": "1", "sparks_reward": 20},
    {"title": "Коллекционер искр", "description": "Накопите 300 искр", "icon": "✨",
     "condition_type": "sparks_total", "condition_value": "300", "sparks_reward": 25},
]

POLICY_DESCRIPTIONS: dict[str, str] = {
    "default_sparks": "Стартовый баланс нового пользователя",
    "upload_work_sparks": "Искры за загрузку работы",
    "work_approved_sparks": "Искры за одобренную работу",
    "review_sparks": "Искры за отзыв к посту",
    "daily_comment_sparks": "Бонус за первый отзыв дня",
    "max_works_per_day": "Лимит загрузок работ в день",
    "quiz_attempts_per_day": "Попыток квиза в день по умолчанию",
}


async def _exists(db: AsyncSession, column: Any, value: Any) -> bool:
    result = await db.execute(select(column).where(column == value).limit(1))
    return result.first() is not None


async def seed_catalog(db: AsyncSession, settings: Settings) -> int:
    """Insert missing default catalog rows. Returns the number of rows added."""
    added = 0

    for role_data in ROLE_SEED_DATA:
        if not await _exists(db, Role.name, role_data["name"]):
            db.add(Role(**role_data, available_buttons=list(_BUTTONS)))
            added += 1
    await db.flush()

    roles = {r.name: r.id for r in (await db.execute(select(Role))).scalars().all()}
    for role_name, characters in CHARACTER_SEED_DATA.items():
        role_id = roles.get(role_name)
        if role_id is None:
            continue
        for character_data in characters:
            if not await _exists(db, Character.name, character_data["name"]):
                db.add(Character(role_id=role_id, **character_data))
                added += 1

    seeds: list[tuple[type, Any, list[dict[str, Any]]]] = [
        (Quiz, Quiz.title, QUIZ_SEED_DATA),
        (Marathon, Marathon.title, MARATHON_SEED_DATA),
        (Interactive, Interactive.title, INTERACTIVE_SEED_DATA),
        (ShopItem, ShopItem.title, SHOP_SEED_DATA),
        (Achievement, Achievement.title, ACHIEVEMENT_SEED_DATA),
    ]
    for model, key_column, rows in seeds:
        for data in rows:
            if not await _exists(db, key_column, data["title"]):
                db.add(model(**data))
                added += 1

    for post_data in POST_SEED_DATA:
        if not await _exists(db, ChannelPost.post_id, post_data["post_id"]):
            db.add(ChannelPost(**post_data, admin_id=settings.bootstrap_admin_id))
            added += 1

    for key in POLICY_KEYS:
        if await db.get(AppSetting, key) is None:
            value = getattr(settings, key)
            db.add(AppSetting(key=key, value=f"{value:g}", description=POLICY_DESCRIPTIONS.get(key)))
            added += 1

    if settings.bootstrap_admin_id and not await _exists(db, Admin.user_id, settings.bootstrap_admin_id):
        if await db.get(User, settings.bootstrap_admin_id) is None:
            db.add(User(user_id=settings.bootstrap_admin_id, sparks=0, created_at=utcnow()))
        db.add(Admin(user_id=settings.bootstrap_admin_id, role=AdminRole.SUPERADMIN.value))
        added += 1

    await db.commit()
    logger.info("Seeded %d catalog rows", added)
    return added
