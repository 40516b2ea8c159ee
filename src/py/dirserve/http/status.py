# Reason phrases for the statuses the server produces, as listed in
# RFC 9110 §15.
HTTP_STATUS: dict[int, str] = {
	200: "OK",
	204: "No Content",
	206: "Partial Content",
	301: "Moved Permanently",
	302: "Found",
	304: "Not Modified",
	307: "Temporary Redirect",
	400: "Bad Request",
	403: "Forbidden",
	404: "Not Found",
	405: "Method Not Allowed",
	412: "Precondition Failed",
	416: "Range Not Satisfiable",
	500: "Internal Server Error",
	501: "Not Implemented",
}

# EOF
