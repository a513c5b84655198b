"""Tests for the C# structural fact parser."""

from __future__ import annotations

import textwrap

from contextmap.parsers.csharp import CSharpParser, clean_xml_doc, constraint_type

API_CONTROLLER = """
    using Microsoft.AspNetCore.Mvc;

    namespace Shop.Orders;

    /// <summary>
    /// Order management endpoints.
    /// </summary>
    [ApiController]
    [Route("api/[controller]")]
    public class OrdersController : ControllerBase
    {
        private readonly IOrderService _orderService;

        public OrdersController(IOrderService orderService)
        {
            _orderService = orderService;
        }

        /// <summary>Gets one order.</summary>
        [HttpGet("{id:int}")]
        [ProducesResponseType(StatusCodes.Status200OK)]
        [ProducesResponseType(StatusCodes.Status404NotFound)]
        public ActionResult<Order> Get(int id)
        {
            return Ok(_orderService.Find(id));
        }

        [HttpPost]
        public IActionResult Create([FromBody] CreateOrder request, [FromQuery(Name = "dry")] bool? dryRun)
        {
            return CreatedAtAction(nameof(Get), new { id = 1 }, request);
        }

        [HttpDelete("/orders/{id}")]
        public IActionResult Delete(int id) => NoContent();
    }
"""


def _parse(source: str, file_path: str = "Orders/OrdersController.cs"):
    return CSharpParser().parse_source(textwrap.dedent(source).lstrip("\n"), file_path)


def test_csharp_parser_extracts_attribute_routed_endpoints() -> None:
    module = _parse(API_CONTROLLER)

    routes = [(endpoint.method, endpoint.path) for endpoint in module.endpoints]
    assert routes == [
        ("GET", "/api/orders/{id:int}"),
        ("POST", "/api/orders"),
        ("DELETE", "/orders/{id}"),
    ]

    get = module.endpoints[0]
    assert get.description == "Gets one order."
    assert get.tags == ["aspnet", "OrdersController"]
    assert [(param.name, param.type, param.location) for param in get.parameters] == [("id", "integer", "path")]
    assert [response.status_code for response in get.responses] == [200, 404]

    create = module.endpoints[1]
    assert create.request_body is not None
    assert create.request_body.schema == {"type": "CreateOrder"}
    assert [(param.name, param.location, param.required) for param in create.parameters] == [
        ("dry", "query", False)
    ]
    assert [response.status_code for response in create.responses] == [201]

    delete = module.endpoints[2]
    assert [response.status_code for response in delete.responses] == [204]


def test_csharp_parser_collects_classes_members_and_methods() -> None:
    module = _parse(API_CONTROLLER)

    assert [cls.name for cls in module.classes] == ["OrdersController"]
    controller = module.classes[0]
    assert controller.description == "Order management endpoints."
    assert controller.annotations == ["[ApiController]", '[Route("api/[controller]")]']
    assert [(prop.name, prop.type) for prop in controller.properties] == [("_orderService", "IOrderService")]
    # Constructors are not methods.
    assert [method.name for method in controller.methods] == ["Get", "Create", "Delete"]

    functions = {function.name: function for function in module.functions}
    assert functions["Get"].return_type == "ActionResult<Order>"
    assert [param.name for param in functions["Create"].parameters] == ["request", "dryRun"]


def test_csharp_parser_routes_conventional_mvc_actions() -> None:
    module = _parse(
        """
        public class ProductsController : Controller
        {
            public ActionResult Index()
            {
                return View();
            }

            public ActionResult PostReview(int id)
            {
                return Ok();
            }

            [NonAction]
            public ActionResult Helper()
            {
                return View();
            }

            private ActionResult Hidden()
            {
                return View();
            }
        }
        """,
        "Products/ProductsController.cs",
    )

    routes = [(endpoint.method, endpoint.path) for endpoint in module.endpoints]
    assert routes == [("GET", "/products/index"), ("POST", "/products/postreview")]


def test_csharp_parser_extracts_minimal_api_routes() -> None:
    module = _parse(
        """
        var app = builder.Build();
        var users = app.MapGroup("/users");

        // Lists every user.
        users.MapGet("/", (IUserService service) => service.All());
        users.MapPost("/{id:guid}", ([FromBody] User user, Guid id) => Results.Created($"/users/{id}", user));
        app.MapDelete("/users/{id}", (int id) => Results.NoContent());
        """,
        "Program.cs",
    )

    routes = [(endpoint.method, endpoint.path) for endpoint in module.endpoints]
    assert routes == [("GET", "/users"), ("POST", "/users/{id:guid}"), ("DELETE", "/users/{id}")]
    assert module.endpoints[0].description == "Lists every user."
    assert all(endpoint.tags == ["minimal-api"] for endpoint in module.endpoints)
    post = module.endpoints[1]
    assert post.request_body is not None
    assert post.request_body.schema == {"type": "User"}
    assert [(param.name, param.type) for param in post.parameters] == [("id", "string")]


def test_csharp_parser_reads_positional_records_and_properties() -> None:
    module = _parse(
        """
        namespace Shop.Orders;

        public record OrderLine(string Sku, int Quantity);

        public class Order
        {
            public int Id { get; set; }
            public string? Note { get; init; }
            public List<OrderLine> Lines { get; set; } = new();
        }
        """,
        "Orders/Order.cs",
    )

    names = [cls.name for cls in module.classes]
    assert names == ["OrderLine", "Order"]
    assert [(prop.name, prop.type) for prop in module.classes[0].properties] == [("Sku", "string"), ("Quantity", "int")]
    assert [(prop.name, prop.type) for prop in module.classes[1].properties] == [
        ("Id", "int"),
        ("Note", "string?"),
        ("Lines", "List<OrderLine>"),
    ]


def test_clean_xml_doc_prefers_summary() -> None:
    raw = "/// <summary>\n/// Creates an order.\n/// </summary>\n/// <param name=\"x\">Ignored.</param>"
    assert clean_xml_doc(raw) == "Creates an order."


def test_constraint_type_maps_route_constraints() -> None:
    assert constraint_type("int") == "integer"
    assert constraint_type("decimal") == "number"
    assert constraint_type("bool") == "boolean"
    assert constraint_type("minlength(3)") == "string"
    assert constraint_type(None) == "string"
