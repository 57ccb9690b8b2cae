from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .extensions import db, migrate, jwt
from .errors import register_error_handlers, register_jwt_handlers


def create_app(config_class=Config):
    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
    CORS(app, resources={r"/*": {"origins": "*"}})
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    register_jwt_handlers(jwt)

    register_error_handlers(app)

    # Register blueprints
    from .routes import auth, courses, masterclasses, coupon
    app.register_blueprint(auth.bp, url_prefix="/api")
    app.register_blueprint(courses.bp, url_prefix="/api/courses")
    app.register_blueprint(masterclasses.bp, url_prefix="/api/masterclasses")
    app.register_blueprint(coupon.bp, url_prefix="/api/coupons")

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    return app
