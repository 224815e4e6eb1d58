"""Schemas and seed data shared across docql tests."""

PERSON_SDL = """
input FilterString {
  eq: String
}

input FilterFloat {
  eq: Float,
  lt: Float,
  gt: Float
}

type Query {
  Person_findById(_id: ID!): Person
  Person_findByName(name: String!): [Person]
  Person_findByAge(age: FilterFloat!): [Person]
}
type Person {
  _id: ID!
  name: String!
  age: Float!
}
input PersonInput {
  name: String
  age: Float
}

type Mutation {
  Person_create(data: PersonInput!): Person
  Person_update(_id: ID!, update: PersonInput!): Person
  Person_delete(_id: ID!): Person
}
"""

TODO_SDL = """
directive @auth on OBJECT

type Query {
  Todo_find: [Todo]
  Todo_findById(_id: ID!): Todo
}
type Mutation {
  Todo_create(data: TodoInput!): Todo
  Todo_update(_id: ID!, update: TodoUpdate!): Todo
  Todo_delete(_id: ID!): Todo
}

# Types
type User {
  _id: ID!
  name: String!
}
type Todo @auth {
  _id: ID!
  userId: ID!
  done: Boolean!
  description: String!
}

# Inputs
input TodoInput {
  userId: ID!
  done: Boolean
  description: String
}
input TodoUpdate {
  done: Boolean
  description: String
}
"""


async def seed_todos(api):
    """Two users, one todo each, and a stored credential for the first user."""
    store = api.store
    val = await store['User'].create({'name': 'Val'})
    other = await store['User'].create({'name': 'test'})
    todos = await store['Todo'].create([
        {'userId': val['_id'], 'done': False, 'description': 'write blog post'},
        {'userId': other['_id'], 'done': True, 'description': 'schedule tweet'},
    ])
    await store['AccessToken'].create({'_id': 'testtoken', 'userId': val['_id']})
    await store['AccessToken'].create({'_id': 'othertoken', 'userId': other['_id']})
    return {'users': [val, other], 'todos': todos}
