from greetings import create_app

app, management_app = create_app()
