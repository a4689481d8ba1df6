from __future__ import annotations

import logging
import os

from salonbook import create_app
from salonbook.auth import ensure_super_admin
from salonbook.extensions import db


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    flask_app = create_app()

    # Local runs get their tables and the reserved admin without a separate step.
    if os.environ.get("SALONBOOK_INIT_DB", "1") in {"1", "true", "True"}:
        with flask_app.app_context():
            db.create_all()
            ensure_super_admin(db.session)
            db.session.commit()

    for rule in sorted(flask_app.url_map.iter_rules(), key=lambda r: r.rule):
        flask_app.logger.debug("route %s %s", ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"})), rule.rule)

    debug_enabled = os.environ.get("FLASK_DEBUG", "0") in {"1", "true", "True"}
    # The reloader would start a second reminder thread.
    flask_app.run(
        host="0.0.0.0",
        port=int(os.environ.get("PORT", 5000)),
        debug=debug_enabled,
        use_reloader=False,
    )


if __name__ == "__main__":
    main()
