#!/usr/bin/env python3
"""
Скрипт для создания сотрудника (охранник, администратор здания или superuser)
Использование:
    python3 scripts/create_user.py --username root --role superuser
    python3 scripts/create_user.py --username guard1 --role guard --building-id 1 --password secret
"""
import sys
import os
import argparse
import getpass

# Добавляем корневую директорию в путь
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from yardpass.database import SessionLocal
from yardpass.models.building import Building
from yardpass.models.user import User, ROLES, ROLE_SUPERUSER
from yardpass.services.auth import get_password_hash, local_timestamp


def create_user(username: str, password: str, role: str, building_id=None) -> bool:
    """Создать сотрудника"""
    db: Session = SessionLocal()

    try:
        if db.query(User).filter(User.username == username).first():
            print(f"Ошибка: Пользователь '{username}' уже существует")
            return False

        if role != ROLE_SUPERUSER:
            if building_id is None:
                print("Ошибка: Для охранника и администратора нужно указать --building-id")
                return False
            if db.query(Building).filter(Building.id == building_id).first() is None:
                print(f"Ошибка: Здание {building_id} не найдено")
                return False
        else:
            building_id = None

        user = User(
            username=username,
            password_hash=get_password_hash(password),
            role=role,
            building_id=building_id,
            is_active=1,
            created_at=local_timestamp(),
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        print(f"✓ Пользователь '{username}' ({role}) успешно создан!")
        print(f"  ID: {user.id}")
        return True

    except SQLAlchemyError as e:
        db.rollback()
        print(f"Ошибка при создании пользователя: {e}")
        return False
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Создать сотрудника")
    parser.add_argument("--username", help="Имя пользователя", default=None)
    parser.add_argument("--password", help="Пароль", default=None)
    parser.add_argument("--role", choices=ROLES, default=ROLE_SUPERUSER)
    parser.add_argument("--building-id", type=int, default=None, help="Здание (для guard и admin)")

    args = parser.parse_args()

    username = args.username or input("Введите имя пользователя: ").strip()
    if not username:
        print("Ошибка: Имя пользователя не может быть пустым")
        return

    password = args.password or getpass.getpass("Введите пароль: ").strip()
    if not password:
        print("Ошибка: Пароль не может быть пустым")
        return

    create_user(username, password, args.role, args.building_id)


if __name__ == "__main__":
    main()
