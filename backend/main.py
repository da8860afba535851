from hello_weather.server import create_app, run


app = create_app()


if __name__ == "__main__":
    run()
