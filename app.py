import os

from lfboard.db_utils import init_db, is_truthy
from lfboard.main import create_app


app = create_app()


if __name__ == "__main__":
    init_db(app.config["DB_PATH"])
    app.run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", "5000")),
        debug=is_truthy(os.environ.get("FLASK_DEBUG")),
    )
