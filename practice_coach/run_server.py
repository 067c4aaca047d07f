import uvicorn

from practice_coach.config import Config
from practice_coach.logging import route_server_logs


def main():
    route_server_logs()
    # log_config=None keeps uvicorn from replacing the handlers routed above
    uvicorn.run("practice_coach.main:app", host=Config.HOST, port=Config.PORT, log_config=None)


if __name__ == "__main__":
    main()
