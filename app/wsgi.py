from app.poolcrm import create_app

app = create_app()
