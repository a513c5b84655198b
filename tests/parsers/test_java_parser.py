"""Tests for the Java structural fact parser."""

from __future__ import annotations

import textwrap

from contextmap.parsers.java import JavaParser, clean_javadoc

SPRING_CONTROLLER = """
    package com.example.users;

    import org.springframework.http.ResponseEntity;
    import org.springframework.web.bind.annotation.*;

    /**
     * REST endpoints for users.
     */
    @RestController
    @RequestMapping("/api/users")
    public class UserController {

        @Autowired
        private UserService userService;

        /**
         * Fetch a single user.
         * @param id the user id
         */
        @GetMapping("/{id}")
        public ResponseEntity<User> getUser(@PathVariable Long id) {
            return ResponseEntity.ok(userService.find(id));
        }

        @PostMapping
        @ResponseStatus(HttpStatus.CREATED)
        public User createUser(@RequestBody CreateUserRequest request) {
            return userService.create(request);
        }

        @RequestMapping(value = "/search", method = RequestMethod.POST)
        public List<User> search(@RequestParam(required = false) String name, @RequestHeader("X-Tenant") String tenant) {
            return userService.search(name);
        }

        private void audit(String message) {
            System.out.println(message);
        }
    }
"""


def _parse(source: str, file_path: str = "src/UserController.java"):
    return JavaParser().parse_source(textwrap.dedent(source).lstrip("\n"), file_path)


def test_java_parser_extracts_spring_endpoints() -> None:
    module = _parse(SPRING_CONTROLLER)

    routes = [(endpoint.method, endpoint.path) for endpoint in module.endpoints]
    assert routes == [
        ("GET", "/api/users/{id}"),
        ("POST", "/api/users"),
        ("POST", "/api/users/search"),
    ]

    get_user = module.endpoints[0]
    assert get_user.description == "Fetch a single user."
    assert get_user.tags == ["spring", "UserController"]
    assert [(param.name, param.location, param.required) for param in get_user.parameters] == [("id", "path", True)]
    assert [response.status_code for response in get_user.responses] == [200]

    create_user = module.endpoints[1]
    assert create_user.request_body is not None
    assert create_user.request_body.content_type == "application/json"
    assert create_user.request_body.schema == {"type": "CreateUserRequest"}
    assert [response.status_code for response in create_user.responses] == [201]

    search = module.endpoints[2]
    assert [(param.name, param.location, param.required) for param in search.parameters] == [
        ("name", "query", False),
        ("X-Tenant", "header", True),
    ]
    assert search.responses[0].schema == {"type": "array"}


def test_java_parser_collects_classes_fields_and_methods() -> None:
    module = _parse(SPRING_CONTROLLER)

    assert [cls.name for cls in module.classes] == ["UserController"]
    controller = module.classes[0]
    assert controller.description == "REST endpoints for users."
    assert "@RestController" in controller.annotations
    assert [(prop.name, prop.type) for prop in controller.properties] == [("userService", "UserService")]
    assert controller.properties[0].annotations == ["@Autowired"]
    assert [method.name for method in controller.methods] == ["getUser", "createUser", "search", "audit"]

    functions = {function.name: function for function in module.functions}
    assert functions["audit"].return_type == "void"
    assert functions["getUser"].return_type == "ResponseEntity<User>"
    assert [param.name for param in functions["search"].parameters] == ["name", "tenant"]


def test_java_parser_extracts_jaxrs_resources() -> None:
    module = _parse(
        """
        @Path("/orders")
        public class OrderResource {

            @GET
            @Path("/{orderId}")
            public Order get(@PathParam("orderId") String orderId, @QueryParam("expand") String expand) {
                return null;
            }

            @DELETE
            public void clear() {
            }
        }
        """,
        "src/OrderResource.java",
    )

    routes = [(endpoint.method, endpoint.path) for endpoint in module.endpoints]
    assert routes == [("GET", "/orders/{orderId}"), ("DELETE", "/orders")]
    get = module.endpoints[0]
    assert get.tags == ["jax-rs", "OrderResource"]
    assert [(param.name, param.location) for param in get.parameters] == [("orderId", "path"), ("expand", "query")]
    assert module.endpoints[1].responses[0].schema is None


def test_java_parser_handles_interfaces_and_records() -> None:
    module = _parse(
        """
        public interface UserRepository {
            User findById(Long id);
        }

        record UserDto(String name) {
        }
        """,
        "src/UserRepository.java",
    )

    assert [cls.name for cls in module.classes] == ["UserRepository", "UserDto"]
    assert module.classes[0].description == "Interface: UserRepository"
    assert [method.name for method in module.classes[0].methods] == ["findById"]
    assert module.endpoints == []


def test_clean_javadoc_drops_block_tags() -> None:
    raw = "/**\n * Does things.\n * @param x the input\n */"
    assert clean_javadoc(raw) == "Does things."
