"""Rust crates used as end-to-end fixtures."""

from __future__ import annotations

SIMPLE_APP = {
    "src/main.rs": '''
        use axum::{extract::Path, routing::{get, post}, Json, Router};
        use form::LoginForm;
        use response::LoginResponse;
        use types::User;

        mod form;
        mod response;
        mod types;

        /// User login endpoint
        ///
        /// This endpoint handles user authentication and returns a JWT token.
        /// The token can be used for subsequent authenticated requests.
        async fn login(Json(form): Json<LoginForm>) -> Json<LoginResponse> {
            todo!()
        }

        /// Get user by ID
        ///
        /// Retrieves user information by their unique identifier.
        async fn get_user(Path(user_id): Path<String>) -> Json<User> {
            todo!()
        }

        /// Root health check
        async fn root() -> &'static str {
            "Service is running"
        }

        fn app() -> Router {
            Router::new()
                .route("/", get(root))
                .route("/login", post(login))
                .route("/user/:id", get(get_user))
        }

        fn main() {
            println!("simple app");
        }
    ''',
    "src/form.rs": '''
        use serde::{Deserialize, Serialize};

        /// User login form
        #[derive(Debug, Clone, Serialize, Deserialize)]
        pub struct LoginForm {
            pub username: String,
            pub password: String,
        }
    ''',
    "src/response.rs": '''
        use serde::{Deserialize, Serialize};
        use uuid::Uuid;

        #[derive(Debug, Clone, Serialize, Deserialize)]
        pub struct LoginResponse {
            pub token: String,
            pub user_id: Uuid,
            pub username: String,
        }
    ''',
    "src/types.rs": '''
        use serde::{Deserialize, Serialize};
        use uuid::Uuid;
        use chrono::DateTime;

        #[derive(Debug, Clone, Serialize, Deserialize)]
        pub struct User {
            pub id: Uuid,
            pub username: String,
            pub email: String,
            pub created_at: DateTime<chrono::Utc>,
        }
    ''',
}

MODULAR_APP = {
    "src/main.rs": '''
        use axum::{routing::get, Router};

        mod modules;

        /// Root health check
        async fn root() -> &'static str {
            "Modular app example"
        }

        fn app() -> Router {
            Router::new()
                .route("/", get(root))
                .merge(modules::router())
        }
    ''',
    "src/modules/mod.rs": '''
        mod auth;
        mod user;

        pub fn router() -> Router {
            Router::new()
                .merge(auth::router())
                .nest("/api/v1/user", user::router())
        }
    ''',
    "src/modules/auth.rs": '''
        pub mod auth_handler;

        use axum::{routing::post, Router};
        use auth_handler::login;

        pub fn router() -> Router {
            Router::new().route("/login", post(login))
        }
    ''',
    "src/modules/auth_handler.rs": '''
        use axum::Json;
        use serde::{Deserialize, Serialize};

        #[derive(Debug, Clone, Serialize, Deserialize)]
        pub struct LoginCredentials {
            pub username: String,
            pub password: String,
        }

        #[derive(Debug, Clone, Serialize, Deserialize)]
        pub struct LoginResponse {
            pub token: String,
            pub user_id: String,
        }

        /// User login endpoint
        ///
        /// Authenticates a user and returns a JWT token.
        pub async fn login(Json(creds): Json<LoginCredentials>) -> Json<LoginResponse> {
            todo!()
        }
    ''',
    "src/modules/user.rs": '''
        pub mod user_handler;

        use axum::{routing::get, Router};
        use user_handler::get_user_info;

        pub fn router() -> Router {
            Router::new().route("/info", get(get_user_info))
        }
    ''',
    "src/modules/user_handler.rs": '''
        use axum::Json;
        use serde::{Deserialize, Serialize};

        #[derive(Debug, Clone, Serialize, Deserialize)]
        pub struct UserInfo {
            pub id: String,
            pub username: String,
            pub email: Option<String>,
        }

        /// Get user information
        pub async fn get_user_info() -> Json<UserInfo> {
            todo!()
        }
    ''',
}

DUP_PATH_APP = {
    "src/main.rs": '''
        use axum::{routing::get, Router};

        mod modules;

        fn main() {
            let app = router();
        }

        fn router() -> Router {
            Router::new()
                .route("/", get(root))
                .merge(modules::router())
        }

        async fn root() -> &'static str {
            "Welcome"
        }
    ''',
    "src/modules/mod.rs": '''
        pub mod user;

        use axum::Router;

        pub fn router() -> Router {
            Router::new()
                .nest("/api/v1/user", user::router())
        }
    ''',
    "src/modules/user/mod.rs": '''
        use axum::Router;

        pub mod handler;

        pub fn router() -> Router {
            Router::new().nest("/api/v1/user", handler::router())
        }
    ''',
    "src/modules/user/handler.rs": '''
        use axum::{routing::get, Router};

        pub fn router() -> Router {
            Router::new().route("/login", get(login))
        }

        pub async fn login() -> &'static str {
            "login handler"
        }
    ''',
}

__all__ = ["DUP_PATH_APP", "MODULAR_APP", "SIMPLE_APP"]
