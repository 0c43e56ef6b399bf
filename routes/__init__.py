# routes/__init__.py
from .auth_routes import auth_bp
from .share_routes import share_bp
from .notification_routes import notification_bp

def register_blueprints(app):
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(share_bp)
    app.register_blueprint(notification_bp, url_prefix="/notifications")
