import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from dotenv import load_dotenv

from extensions import db, migrate
from config import Config
from routes import register_blueprints

load_dotenv()  # charge les variables d'environnement depuis .env

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    # Overrides must land before the extensions read the config
    if test_config:
        app.config.update(test_config)

    CORS(app,
         origins=app.config["CORS_ORIGINS"],
         allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
         methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
         supports_credentials=True)

    # Init extensions
    db.init_app(app)
    jwt = JWTManager(app)
    migrate.init_app(app, db)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"msg": reason}), 401

    # Register blueprints
    register_blueprints(app)

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=5001)
