import os

from app import create_app
from config import instance_dir
from extensions import db
import models  # noqa: F401  (db models to create, all)

app = create_app()

with app.app_context():
    os.makedirs(instance_dir, exist_ok=True)
    print("DB URI:", app.config["SQLALCHEMY_DATABASE_URI"])
    db.create_all()
    print("DB CREATED")
