from pydantic import BaseModel

from mercury import HTTPException
from mercury import Mercury
from mercury import pass_route
from mercury import render

app = Mercury("basic")


class Item(BaseModel):
    name: str
    price: float
    quantity: int = 1


items_db: dict[int, Item] = {}
next_id = 1


@app.get("/")
def index(params, request, response):
    return "Welcome to Mercury!"


@app.get("/hello/:name")
def hello(params, request, response):
    render("string", "<h1>Hello, $name!</h1>", locals={"name": params.name})


@app.get("/items")
def list_items(params, request, response):
    return [{"id": item_id, **item.model_dump()} for item_id, item in items_db.items()]


@app.get("/items/:item_id")
def get_item(params, request, response):
    if not params.item_id.isdigit():
        pass_route()
    item_id = int(params.item_id)
    if item_id not in items_db:
        raise HTTPException(404, "Item not found")
    return items_db[item_id]


@app.get("/items/:slug")
def get_item_by_name(params, request, response):
    for item in items_db.values():
        if item.name == params.slug:
            return item
    raise HTTPException(404, "Item not found")


@app.post("/items")
def create_item(params, request, response):
    global next_id
    item = request.model(Item)
    item_id = next_id
    next_id += 1
    items_db[item_id] = item
    response.status = 201
    return {"id": item_id, **item.model_dump()}


@app.delete("/items/:item_id")
def delete_item(params, request, response):
    items_db.pop(int(params.item_id), None)
    response.status = 204


@app.get("/files/*")
def files(params, request, response):
    return "You asked for " + "/".join(params.splat)


if __name__ == "__main__":
    app.serve(host="127.0.0.1", port=8000, workers=4)
