from flask import Flask, jsonify
from flask_migrate import Migrate
from .extensions import db, login_manager
from .errors import register_error_handlers

migrate = Migrate()


def create_app(config_object='config.Config'):
    """App factory: extensions, JSON error handlers and the two API blueprints."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    register_error_handlers(app)

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    from .blueprints.reviews import bp as reviews_bp
    app.register_blueprint(reviews_bp, url_prefix="/reviews")

    from .blueprints.programs import bp as programs_bp
    app.register_blueprint(programs_bp, url_prefix="/programs")

    @app.get('/health')
    def health():
        return jsonify({"status": "ok"})

    return app
