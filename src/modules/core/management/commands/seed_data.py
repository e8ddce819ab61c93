from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.catalog.models import (
    ClassGroupAssignment,
    GroupType,
    Item,
    ItemGroup,
    School,
    SchoolClass,
)
from modules.configuration.constants import DEFAULTS
from modules.configuration.models import Setting

DEMO_SCHOOL_CODE = "1234"

CLASS_NAMES = ["Class 1", "Class 2", "Class 3"]

# (title, sku, price_paise, stock, weight_grams, length, width, height)
BOOKS = [
    ("English Reader", "BK-ENG-1", 24000, 100, 300, 24, 18, 2),
    ("Mathematics Workbook", "BK-MAT-1", 18000, 100, 250, 24, 18, 1),
    ("Environmental Studies", "BK-EVS-1", 21000, 80, 280, 24, 18, 2),
    ("Hindi Vyakaran", "BK-HIN-1", 15000, 60, 200, 22, 16, 1),
]
STATIONERY = [
    ("Notebook (single line, 172 pages)", "ST-NB-172", 6000, 500, 200, 20, 15, 2),
    ("Pencil box", "ST-PB-01", 9000, 200, 120, 21, 7, 3),
    ("Crayons (24 shades)", "ST-CR-24", 7500, 150, 150, 18, 10, 2),
]


class Command(BaseCommand):
    help = "Seed the database with a demo school, catalog and default settings."

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        settings_created = self._seed_settings()
        school = self._seed_school()
        classes = self._seed_classes(school)
        books = self._seed_group("Primary Books", GroupType.BOOKS, BOOKS)
        stationery = self._seed_group("Primary Stationery", GroupType.STATIONERY, STATIONERY)
        for school_class in classes:
            for group in (books, stationery):
                ClassGroupAssignment.objects.get_or_create(
                    school_class=school_class, group=group
                )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"settings={settings_created}, "
                f"school={school.code}, "
                f"classes={len(classes)}, "
                f"items={Item.objects.count()}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        if User.objects.filter(username="admin").exists():
            return 0
        User.objects.create_superuser("admin", password="admin123")
        return 1

    def _seed_settings(self) -> int:
        created = 0
        for key, value in DEFAULTS.items():
            _, was_created = Setting.objects.get_or_create(key=key, defaults={"value": value})
            created += int(was_created)
        return created

    def _seed_school(self) -> School:
        school, _ = School.objects.get_or_create(
            code=DEMO_SCHOOL_CODE,
            defaults={
                "name": "Demo Public School",
                "address": "12 School Road, Andheri East, Mumbai 400069",
                "is_active": True,
            },
        )
        return school

    def _seed_classes(self, school: School) -> list[SchoolClass]:
        self.stdout.write("Creating classes...")
        return [
            SchoolClass.objects.get_or_create(
                school=school, name=name, defaults={"sort_order": index}
            )[0]
            for index, name in enumerate(CLASS_NAMES, start=1)
        ]

    def _seed_group(self, name: str, group_type: str, rows) -> ItemGroup:
        self.stdout.write(f"Creating {group_type} items...")
        group, _ = ItemGroup.objects.get_or_create(name=name, type=group_type)
        for title, sku, price, stock, weight, length, width, height in rows:
            Item.objects.get_or_create(
                sku=sku,
                defaults={
                    "group": group,
                    "title": title,
                    "price_paise": price,
                    "stock": stock,
                    "weight_grams": weight,
                    "length_cm": length,
                    "width_cm": width,
                    "height_cm": height,
                },
            )
        return group
