import time

from mercury import AppConfig
from mercury import Mercury

app = Mercury(AppConfig(name="streaming", debug=True))


@app.get("/")
def index(params, request, response):
    return "<a href='/count/5'>count</a> <a href='/words'>words</a>"


@app.get("/count/:n")
def count(params, request, response):
    response.headers["Content-Type"] = "text/plain"

    def generate():
        for i in range(int(params.n)):
            time.sleep(0.5)
            yield f"{i}\n"
    return generate


@app.get("/words")
def words(params, request, response):
    response.headers["Content-Type"] = "text/plain"
    return (word + " " for word in "The quick brown fox jumps over the lazy dog".split())


@app.get("/visits")
def visits(params, request, response):
    seen = int(request.cookies.get("visits", "0")) + 1
    response.set_cookie("visits", str(seen))
    return f"Visit number {seen}"


if __name__ == "__main__":
    app.serve()
