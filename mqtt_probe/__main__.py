from mqtt_probe.cli import app

if __name__ == "__main__":
    app()
