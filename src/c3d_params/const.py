ERRORS = {
  "E_MALFORMED_RECORD": "Record length or offset inconsistent with section buffer",
  "E_UNEXPECTED_TYPE": "Stored type does not match the expected type",
  "E_DIMENSION_MISMATCH": "Stored dimensions do not match the documented shape",
  "E_UNKNOWN_GROUP": "Group id cannot be resolved for the record being written",
}
