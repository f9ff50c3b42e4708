import os

from src.bricks_attendance.bricks_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    # the reloader would start the session scheduler twice
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["DEBUG"],
        use_reloader=False,
    )
