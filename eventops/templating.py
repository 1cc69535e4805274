# eventops/templating.py
from fastapi.templating import Jinja2Templates

from eventops.config import BASE_DIR
from eventops.views import month_label

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.filters["month_label"] = month_label
