import azure.functions as func

from seriee_service.blueprints import (
    activity_blueprint,
    catalog_blueprint,
    diary_blueprint,
    progress_blueprint,
    updates_blueprint,
    watchlist_blueprint,
)

app = func.FunctionApp()

app.register_blueprint(catalog_blueprint)
app.register_blueprint(watchlist_blueprint)
app.register_blueprint(diary_blueprint)
app.register_blueprint(progress_blueprint)
app.register_blueprint(activity_blueprint)
app.register_blueprint(updates_blueprint)
