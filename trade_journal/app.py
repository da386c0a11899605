"""
app.py
------

Flask web application for the trade journal. Pages let the trader add
trades, browse their history, set a starting capital and look at
performance for a direction / time window. Every page reads its numbers
from JournalService; nothing is computed in the views themselves.

To run the application:
    1. Install the package (``pip install -e .``).
    2. Execute ``trade-journal`` (or ``python -m trade_journal.app``).
    3. Navigate to http://localhost:5004 in your web browser.

Note: The Flask development server is intended for local use. For
production deployments consider using a production WSGI server
such as Gunicorn.
"""
import logging
from datetime import datetime
from typing import Optional

from flask import (
    Flask, Response, flash, g, jsonify, redirect, render_template, request, url_for
)

from .config import Settings
from .csv_io import export_trades, parse_trades_csv
from .database import TradeJournalDB
from .errors import InvalidTrade, JournalError, MissingUser, StorageUnavailable
from .interfaces import StaticIdentity
from .remote import SupabaseClient, SupabaseIdentity, SupabaseTradeStore
from .service import JournalService, new_trade_from_form
from .stats import DirectionFilter, TimeWindow, daily_equity_frame

logger = logging.getLogger(__name__)

ALLOWED_CSV = {"csv"}


def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_CSV


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return request.cookies.get("access_token")


def _filters():
    """Read ?direction= and ?window= query params, falling back to ALL."""
    try:
        direction = DirectionFilter(request.args.get("direction", "all"))
    except ValueError:
        direction = DirectionFilter.ALL
    try:
        window = TimeWindow(request.args.get("window", "all"))
    except ValueError:
        window = TimeWindow.ALL
    return direction, window


def _report(problems, from_cache: bool = False) -> None:
    for p in problems:
        if isinstance(p, MissingUser):
            flash("Sign in to see your trades.", "error")
        elif from_cache:
            flash(f"Could not reach trade storage, showing last known trades. ({p})", "error")
        else:
            flash(f"Could not reach trade storage, no trades could be loaded. ({p})", "error")


def create_app(service: Optional[JournalService] = None, settings: Optional[Settings] = None):
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key

    local_db = None
    last_known = {}
    if service is None:
        local_db = TradeJournalDB(settings.db_path)
        if settings.backend != "supabase":
            service = JournalService(
                StaticIdentity(settings.user_id),
                local_db,
                local_db,
                settings.default_starting_capital,
                last_known,
            )

    def get_service() -> JournalService:
        if service is not None:
            return service
        # supabase: identity comes from each request's token
        if "journal" not in g:
            client = SupabaseClient(
                settings.supabase_url, settings.supabase_anon_key, access_token=_bearer_token()
            )
            g.journal = JournalService(
                SupabaseIdentity(client),
                SupabaseTradeStore(client),
                local_db,
                settings.default_starting_capital,
                last_known,
            )
        return g.journal

    # ---------- routes ----------
    @app.route("/")
    def index():
        result = get_service().snapshot()
        _report(result.problems, result.from_cache)
        trades = sorted(result.snapshot.trades, key=lambda t: t.occurred_on, reverse=True)
        return render_template(
            "index.html", title="Trade History", trades=trades, snapshot=result.snapshot
        )

    @app.route("/add", methods=["GET", "POST"])
    def add_trade():
        if request.method == "POST":
            try:
                trade = new_trade_from_form(request.form)
                get_service().add_trade(trade)
            except MissingUser as e:
                flash(str(e), "error")
                return redirect(url_for("add_trade"))
            except InvalidTrade as e:
                flash(str(e), "error")
                return render_template("add_trade.html", title="Add Trade", form=request.form), 400
            except StorageUnavailable as e:
                logger.error("could not save trade: %s", e)
                flash("Could not save the trade. Please try again.", "error")
                return render_template("add_trade.html", title="Add Trade", form=request.form), 503
            flash("Trade added.", "success")
            return redirect(url_for("index"))

        return render_template("add_trade.html", title="Add Trade", form={})

    @app.route("/dashboard")
    def dashboard():
        direction, window = _filters()
        result = get_service().snapshot(direction, window)
        _report(result.problems, result.from_cache)
        return render_template(
            "dashboard.html",
            title="Dashboard",
            snapshot=result.snapshot,
            direction=direction,
            window=window,
            directions=list(DirectionFilter),
            windows=list(TimeWindow),
        )

    @app.route("/capital", methods=["POST"])
    def capital():
        raw = request.form.get("starting_capital", "").strip()
        try:
            get_service().set_starting_capital(float(raw))
        except ValueError:
            flash("Starting capital must be a number.", "error")
        except JournalError as e:
            flash(str(e), "error")
        else:
            flash("Starting capital updated.", "success")
        return redirect(url_for("dashboard"))

    @app.route("/export", methods=["GET"], endpoint="export")
    def export_csv():
        result = get_service().load_trades()
        return Response(
            export_trades(result.trades),
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=trades.csv"},
        )

    @app.route("/import", methods=["GET", "POST"])
    def import_csv():
        if request.method == "POST":
            f = request.files.get("file")
            if not f or f.filename == "":
                flash("Please choose a CSV file.", "error")
                return redirect(url_for("import_csv"))

            if not allowed_file(f.filename):
                flash("Only .csv files are supported.", "error")
                return redirect(url_for("import_csv"))

            content = f.read().decode("utf-8", errors="ignore")
            trades, errors = parse_trades_csv(content)
            for err in errors:
                flash(err, "error")

            svc = get_service()
            saved = 0
            try:
                for trade in trades:
                    svc.add_trade(trade)
                    saved += 1
            except (MissingUser, StorageUnavailable) as e:
                flash(str(e), "error")
            flash(f"Imported {saved} trades.", "success" if saved else "error")
            return redirect(url_for("index"))

        return render_template("import.html", title="Import Trades")

    # -------- JSON API --------
    @app.route("/api/snapshot")
    def api_snapshot():
        direction, window = _filters()
        result = get_service().snapshot(direction, window)
        payload = result.snapshot.to_dict()
        payload["problems"] = [str(p) for p in result.problems]
        payload["from_cache"] = result.from_cache
        return jsonify(payload)

    @app.route("/api/equity/daily")
    def api_daily_equity():
        direction, window = _filters()
        result = get_service().snapshot(direction, window)
        snap = result.snapshot
        frame = daily_equity_frame(snap.equity_curve, snap.capital.starting_capital)
        rows = [
            {
                "date": d.isoformat(),
                "pnl": float(pnl),
                "cumulative_pnl": float(cum),
                "equity": float(eq),
            }
            for d, pnl, cum, eq in frame.itertuples(index=False, name=None)
        ]
        return jsonify(rows)

    @app.template_filter("money")
    def money(value):
        return f"{value:,.2f}"

    return app


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("starting trade journal (%s backend) at %s", settings.backend, datetime.now().isoformat())
    app = create_app(settings=settings)
    app.run(host="0.0.0.0", port=5004, debug=True, use_reloader=False)


# Run directly
if __name__ == "__main__":
    main()
