from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Importa os modelos para que sejam registrados com a Base
from propfind.models import user, listing, property_request, receipt  # noqa: E402,F401
